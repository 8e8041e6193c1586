"""Ratio values that carry their own edge cases.

ROE with nothing deployed, DSCR with no debt and annualizing a total wipe-out
all have answers that are not numbers. They are modeled as tagged values so
formatting code can switch on `kind` instead of testing for inf/NaN.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class RatioKind(Enum):
    FINITE = "finite"
    INFINITE = "infinite"
    UNDEFINED = "undefined"


@dataclass(frozen=True)
class Ratio:
    kind: RatioKind
    value: Decimal | None = None
    negative: bool = False  # Only meaningful for INFINITE

    @classmethod
    def finite(cls, value: Decimal) -> "Ratio":
        return cls(kind=RatioKind.FINITE, value=value)

    @classmethod
    def infinite(cls, negative: bool = False) -> "Ratio":
        return cls(kind=RatioKind.INFINITE, negative=negative)

    @classmethod
    def undefined(cls) -> "Ratio":
        return cls(kind=RatioKind.UNDEFINED)

    @property
    def is_finite(self) -> bool:
        return self.kind is RatioKind.FINITE

    def sign(self) -> int:
        if self.kind is RatioKind.FINITE:
            return (self.value > 0) - (self.value < 0)
        if self.kind is RatioKind.INFINITE:
            return -1 if self.negative else 1
        return 0

    def sort_key(self) -> tuple[int, Decimal]:
        """Orders undefined < -inf < finite values < +inf."""
        if self.kind is RatioKind.UNDEFINED:
            return (0, Decimal("0"))
        if self.kind is RatioKind.INFINITE:
            return (1, Decimal("0")) if self.negative else (3, Decimal("0"))
        return (2, self.value)

    def __str__(self) -> str:
        if self.kind is RatioKind.FINITE:
            return str(self.value)
        if self.kind is RatioKind.INFINITE:
            return "-∞" if self.negative else "∞"
        return "n/a"


def divide(numerator: Decimal, denominator: Decimal) -> Ratio:
    """numerator / denominator, with a zero denominator mapped to a sentinel.

    0/0 is undefined; x/0 is infinite with the sign of x.
    """
    if denominator == 0:
        if numerator == 0:
            return Ratio.undefined()
        return Ratio.infinite(negative=numerator < 0)
    return Ratio.finite(numerator / denominator)
