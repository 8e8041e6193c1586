"""Phase-based appreciation.

Three regimes, each with its own annual rate compounded monthly:
  construction: booking until handover
  growth:       handover for `growth_period_years`
  mature:       everything after

Built once per run into a PhaseTimeline, which the projection engine queries
month by month.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from src.models.assumptions import AppreciationRates

HUNDRED = Decimal("100")
ONE = Decimal("1")
TWELFTH = ONE / Decimal("12")


class Phase(Enum):
    CONSTRUCTION = "construction"
    GROWTH = "growth"
    MATURE = "mature"


def monthly_rate(annual_percent: Decimal) -> Decimal:
    """Equivalent monthly compounding rate for an annual whole-percent rate."""
    base = ONE + annual_percent / HUNDRED
    if base <= 0:
        raise ValueError(f"Annual rate must be above -100%, got {annual_percent}")
    return base ** TWELFTH - ONE


@dataclass(frozen=True)
class PhaseRegime:
    phase: Phase
    annual_rate: Decimal
    start_month: int
    end_month: int | None  # Exclusive; None = open-ended
    monthly_rate: Decimal

    def contains(self, month: int) -> bool:
        return month >= self.start_month and (self.end_month is None or month < self.end_month)


class PhaseTimeline:
    """Lookup of the appreciation regime active in a given projection month."""

    def __init__(self, regimes: list[PhaseRegime]):
        if not regimes:
            raise ValueError("PhaseTimeline needs at least one regime")
        self.regimes = regimes

    def regime_for(self, month: int) -> PhaseRegime:
        for regime in self.regimes:
            if regime.contains(month):
                return regime
        return self.regimes[-1]

    def phase_for(self, month: int) -> Phase:
        return self.regime_for(month).phase

    def rate_for(self, month: int) -> Decimal:
        return self.regime_for(month).monthly_rate


def build_phase_timeline(handover_month: int, rates: AppreciationRates) -> PhaseTimeline:
    """Phase boundaries for a project handing over at `handover_month`."""
    growth_end = handover_month + rates.growth_period_years * 12
    candidates = [
        (Phase.CONSTRUCTION, rates.construction, 0, handover_month),
        (Phase.GROWTH, rates.growth, handover_month, growth_end),
        (Phase.MATURE, rates.mature, growth_end, None),
    ]
    regimes = [
        PhaseRegime(
            phase=phase,
            annual_rate=annual,
            start_month=start,
            end_month=end,
            monthly_rate=monthly_rate(annual),
        )
        for phase, annual, start, end in candidates
        if end is None or end > start
    ]
    return PhaseTimeline(regimes)
