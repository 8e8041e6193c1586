"""Debt-service and installment coverage.

DSCR here is the off-plan flavour: net rent over the mortgage payment for
the same month. Pure functions. No I/O.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from src.config import settings
from src.engine.projection import ProjectionLedger
from src.models.milestones import PaymentSchedule
from src.models.ratio import Ratio, RatioKind, divide
from src.models.results import DscrPoint, PostHandoverCoverage

HUNDRED = Decimal("100")
ZERO = Decimal("0")


class DscrBand(Enum):
    STRONG = "strong"
    ADEQUATE = "adequate"
    SHORTFALL = "shortfall"


@dataclass(frozen=True)
class DscrThresholds:
    strong: Decimal
    adequate: Decimal

    @classmethod
    def from_settings(cls) -> "DscrThresholds":
        return cls(strong=settings.dscr_strong_threshold, adequate=settings.dscr_adequate_threshold)


def dscr(net_rent: Decimal, mortgage_payment: Decimal | None) -> Ratio:
    """Net rent / mortgage payment. Infinite with no debt to service."""
    if mortgage_payment is None or mortgage_payment == 0:
        return Ratio.infinite()
    return divide(net_rent, mortgage_payment)


def dscr_band(ratio: Ratio, thresholds: DscrThresholds | None = None) -> DscrBand:
    thresholds = thresholds or DscrThresholds.from_settings()
    if ratio.kind is RatioKind.INFINITE:
        return DscrBand.SHORTFALL if ratio.negative else DscrBand.STRONG
    if ratio.kind is RatioKind.UNDEFINED:
        return DscrBand.SHORTFALL
    if ratio.value >= thresholds.strong:
        return DscrBand.STRONG
    if ratio.value >= thresholds.adequate:
        return DscrBand.ADEQUATE
    return DscrBand.SHORTFALL


def dscr_series(ledger: ProjectionLedger, thresholds: DscrThresholds | None = None) -> list[DscrPoint]:
    """DSCR for every ledger month.

    Month m is net_rent[m] / level payment, using the scheduled payment even
    before the first instalment falls due so construction months show how
    rent would cover the loan.

    Exception to that formula: months after `loan_end_month` have no debt
    left to service, so they report infinite coverage instead of dividing
    by a payment that is no longer made.
    """
    thresholds = thresholds or DscrThresholds.from_settings()
    points = []
    for p in ledger.months:
        payment = ledger.monthly_mortgage_payment
        if ledger.loan_end_month is not None and p.month > ledger.loan_end_month:
            payment = None
        ratio = dscr(p.net_rent, payment)
        points.append(DscrPoint(month=p.month, dscr=ratio, band=dscr_band(ratio, thresholds).value))
    return points


def post_handover_coverage(ledger: ProjectionLedger, schedule: PaymentSchedule) -> PostHandoverCoverage | None:
    """How far net rent carries the installments still due after handover.

    None when the plan has nothing due after handover.
    """
    events = schedule.post_handover_events()
    if not events:
        return None

    handover = schedule.handover_month
    total_due = sum((e.amount for e in events), ZERO)
    months = max(1, events[-1].month - handover)
    monthly_equivalent = total_due / months

    window = ledger.months[handover + 1:handover + months + 1]
    monthly_rent = sum((p.net_rent for p in window), ZERO) / len(window) if window else ZERO

    monthly_cash_flow = monthly_rent - monthly_equivalent
    coverage = monthly_rent / monthly_equivalent * HUNDRED if monthly_equivalent > 0 else ZERO

    if monthly_cash_flow >= 0:
        status = "full"
    elif monthly_rent > 0:
        status = "partial"
    else:
        status = "none"

    return PostHandoverCoverage(
        total_due=total_due,
        months=months,
        monthly_equivalent=monthly_equivalent,
        monthly_rent=monthly_rent,
        monthly_cash_flow=monthly_cash_flow,
        coverage_percent=coverage,
        total_gap=max(ZERO, -monthly_cash_flow) * months,
        status=status,
    )
