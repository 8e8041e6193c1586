"""Projection error taxonomy.

Structural problems (bad milestone plans, out-of-horizon lookups) raise.
Numeric edge cases never raise: they produce Ratio sentinels and a
NumericWarning so the rest of the ledger stays usable.
"""

from dataclasses import dataclass
from enum import Enum

from src.models.milestones import PaymentMilestone


class ProjectionError(Exception):
    """Base class for errors raised by the projection engine."""


class ScheduleError(ProjectionError):
    """Malformed payment plan. Carries the offending milestone when known."""

    def __init__(self, message: str, milestone: PaymentMilestone | None = None):
        super().__init__(message)
        self.milestone = milestone


class OutOfRangeError(ProjectionError):
    """Requested month lies outside the computed (or permitted) horizon."""

    def __init__(self, message: str, month: int, horizon: int):
        super().__init__(message)
        self.month = month
        self.horizon = horizon


class WarningCode(Enum):
    NEGATIVE_NET_RENT = "negative_net_rent"
    DIVISION_BY_ZERO_GUARD = "division_by_zero_guard"
    LOAN_CAPPED = "loan_capped"


@dataclass(frozen=True)
class NumericWarning:
    code: WarningCode
    message: str
    month: int | None = None
