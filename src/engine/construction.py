"""Construction progress <-> timeline mapping.

Construction-triggered milestones need to know *when* a given percent
complete is reached. The default curve is linear between booking and
handover. The S-curve is calibrated to 30-40 floor towers on a 36 month
programme: slow foundations, fast superstructure, slow finishing.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Protocol

HUNDRED = Decimal("100")

# (timeline %, construction %) breakpoints
S_CURVE_POINTS: list[tuple[Decimal, Decimal]] = [
    (Decimal("0"), Decimal("0")),
    (Decimal("25"), Decimal("18")),    # Foundations and podium
    (Decimal("42"), Decimal("35")),    # Superstructure starts
    (Decimal("50"), Decimal("40")),
    (Decimal("58"), Decimal("50")),    # Mid-height
    (Decimal("67"), Decimal("65")),    # Near topping out
    (Decimal("75"), Decimal("75")),    # Finishing starts
    (Decimal("89"), Decimal("90")),    # MEP and interiors
    (Decimal("100"), Decimal("100")),  # Handover
]


class ConstructionCurve(Protocol):
    def timeline_percent(self, construction_percent: Decimal) -> Decimal:
        """Share of the booking-to-handover period elapsed when `construction_percent` is reached."""
        ...

    def construction_percent(self, timeline_percent: Decimal) -> Decimal:
        """Construction completed after `timeline_percent` of the period."""
        ...


def _interpolate(points: list[tuple[Decimal, Decimal]], x: Decimal) -> Decimal:
    if x <= points[0][0]:
        return points[0][1]
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        if x <= x1:
            return y0 + (x - x0) / (x1 - x0) * (y1 - y0)
    return points[-1][1]


class LinearConstructionCurve:
    def timeline_percent(self, construction_percent: Decimal) -> Decimal:
        return max(Decimal("0"), min(HUNDRED, construction_percent))

    def construction_percent(self, timeline_percent: Decimal) -> Decimal:
        return max(Decimal("0"), min(HUNDRED, timeline_percent))


class SCurveConstructionCurve:
    def __init__(self, points: list[tuple[Decimal, Decimal]] | None = None):
        self.points = points or S_CURVE_POINTS
        self._inverse = [(c, t) for t, c in self.points]

    def timeline_percent(self, construction_percent: Decimal) -> Decimal:
        return _interpolate(self._inverse, construction_percent)

    def construction_percent(self, timeline_percent: Decimal) -> Decimal:
        return _interpolate(self.points, timeline_percent)


LINEAR = LinearConstructionCurve()


def round_month(value: Decimal) -> int:
    """Nearest whole month, halves rounded up."""
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def construction_to_month(
    construction_percent: Decimal,
    handover_month: int,
    curve: ConstructionCurve = LINEAR,
) -> int:
    """Projection month at which `construction_percent` is reached."""
    timeline = curve.timeline_percent(construction_percent)
    return round_month(timeline / HUNDRED * handover_month)


def month_to_construction(
    month: int,
    handover_month: int,
    curve: ConstructionCurve = LINEAR,
) -> Decimal:
    """Construction percent complete at a projection month (100 from handover on)."""
    if handover_month <= 0 or month >= handover_month:
        return HUNDRED
    if month <= 0:
        return Decimal("0")
    return curve.construction_percent(Decimal(month) / handover_month * HUNDRED)
