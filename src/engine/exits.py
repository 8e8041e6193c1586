"""Exit scenario analysis over a projection ledger.

Each candidate exit month is settled independently against the ledger:
sell at that month's value, pay off the loan, hand unpaid installments to
the buyer, pay exit costs. Results keep the caller's candidate order.

Pure computation. No I/O.
"""

import logging
from decimal import Decimal

from src.engine.construction import round_month
from src.engine.errors import NumericWarning, OutOfRangeError, WarningCode
from src.engine.irr import exit_irr
from src.engine.projection import ProjectionLedger
from src.models.assumptions import OIInputs
from src.models.milestones import PaymentSchedule
from src.models.ratio import Ratio, RatioKind, divide
from src.models.results import ExitScenarioResult

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")
ONE = Decimal("1")
TWELVE = Decimal("12")

# Default candidates, as percent of the construction timeline
AUTO_EXIT_TIMELINE_PERCENTS = (50, 60, 70, 80, 90, 100)


def is_handover_exit(exit_month: int, handover_month: int) -> bool:
    return exit_month == handover_month


def auto_exit_months(
    handover_month: int,
    timeline_percents: tuple[int, ...] = AUTO_EXIT_TIMELINE_PERCENTS,
) -> list[int]:
    """Candidate exits spread over the construction period, ending at handover."""
    months = []
    for pct in timeline_percents:
        month = round_month(Decimal(pct) / HUNDRED * handover_month)
        if month not in months:
            months.append(month)
    return months


def threshold_advance(schedule: PaymentSchedule, exit_month: int, threshold_percent: Decimal | None) -> Decimal:
    """Extra payment needed before a pre-handover resale is allowed.

    Developers typically refuse to register a resale until a minimum share
    of the price has been paid. Zero once the plan itself has reached it.
    """
    if threshold_percent is None or exit_month >= schedule.handover_month:
        return ZERO
    required = schedule.base_price * threshold_percent / HUNDRED
    return max(ZERO, required - schedule.paid_through(exit_month))


def earliest_threshold_exit(schedule: PaymentSchedule, threshold_percent: Decimal) -> int:
    """First month the plan alone satisfies the resale threshold."""
    required = schedule.base_price * threshold_percent / HUNDRED
    paid = ZERO
    for event in schedule.events:
        paid += event.amount
        if paid >= required:
            return event.month
    return schedule.last_payment_month


def annualized_roe(roe: Ratio, months: int) -> Ratio:
    """(1 + roe)^(12 / months) - 1.

    Undefined for a zero-month hold or a loss beyond the capital deployed.
    """
    if months <= 0:
        return Ratio.undefined()
    if roe.kind is RatioKind.INFINITE:
        return roe if not roe.negative else Ratio.undefined()
    if not roe.is_finite:
        return roe
    growth = ONE + roe.value
    if growth < 0:
        return Ratio.undefined()
    return Ratio.finite(growth ** (TWELVE / Decimal(months)) - ONE)


def _financed_after(ledger: ProjectionLedger, exit_month: int) -> Decimal:
    """Installments after the exit already settled by the loan draw."""
    if ledger.origination_month is None or exit_month < ledger.origination_month:
        return ZERO
    return sum((p.financed_amount for p in ledger.months[exit_month + 1:]), ZERO)


def analyze_exit(
    ledger: ProjectionLedger,
    schedule: PaymentSchedule,
    inputs: OIInputs,
    exit_month: int,
    warnings: list[NumericWarning] | None = None,
) -> ExitScenarioResult:
    """Settle a sale at `exit_month`.

    Raises:
        OutOfRangeError: exit_month lies outside the ledger horizon.
    """
    point = ledger.month(exit_month)

    exit_price = point.property_value
    base = inputs.base_price
    appreciation = exit_price - base

    plan_capital = point.capital_deployed
    advance = threshold_advance(schedule, exit_month, inputs.minimum_exit_threshold_percent)
    total_capital = plan_capital + advance

    unpaid = max(ZERO, schedule.unpaid_after(exit_month) - _financed_after(ledger, exit_month) - advance)
    commission = max(ZERO, exit_price * inputs.exit_costs.agent_commission_percent / HUNDRED)
    noc_fee = max(ZERO, inputs.exit_costs.noc_fee)
    exit_costs = commission + noc_fee

    proceeds = exit_price - point.loan_balance - unpaid - exit_costs
    true_profit = (
        proceeds
        - total_capital
        + point.cumulative_net_rent
        - point.cumulative_financing_costs
    )

    roe = divide(true_profit, total_capital)
    if total_capital == 0:
        message = f"No capital deployed by month {exit_month}; ROE reported as {roe}"
        logger.warning(message)
        if warnings is not None:
            warnings.append(NumericWarning(WarningCode.DIVISION_BY_ZERO_GUARD, message, exit_month))

    # Investor's monthly cash flows, sale settled in the exit month
    flows = [
        p.net_rent - p.out_of_pocket - p.interest_paid - p.insurance_cost
        for p in ledger.months[:exit_month + 1]
    ]
    flows[-1] += proceeds - advance

    return ExitScenarioResult(
        exit_month=exit_month,
        calendar_year=point.calendar_year,
        calendar_month=point.calendar_month,
        is_handover_exit=is_handover_exit(exit_month, ledger.handover_month),
        exit_price=exit_price,
        base_price=base,
        appreciation=appreciation,
        appreciation_percent=appreciation / base * HUNDRED if base else ZERO,
        plan_capital=plan_capital,
        advance_required=advance,
        total_capital_deployed=total_capital,
        cumulative_net_rent=point.cumulative_net_rent,
        financing_costs=point.cumulative_financing_costs,
        loan_payoff=point.loan_balance,
        unpaid_installments=unpaid,
        agent_commission=commission,
        noc_fee=noc_fee,
        exit_costs=exit_costs,
        true_profit=true_profit,
        true_roe=roe,
        annualized_roe=annualized_roe(roe, exit_month),
        irr=exit_irr(flows),
    )


def analyze_exits(
    ledger: ProjectionLedger,
    schedule: PaymentSchedule,
    inputs: OIInputs,
    exit_months: list[int] | None = None,
    warnings: list[NumericWarning] | None = None,
) -> list[ExitScenarioResult]:
    """Analyze every candidate exit, in the order given.

    Falls back to inputs.exit_months, then to auto_exit_months().
    """
    if exit_months is None:
        exit_months = inputs.exit_months or auto_exit_months(ledger.handover_month)

    for month in exit_months:
        if month < 0 or month > ledger.horizon_months:
            raise OutOfRangeError(
                f"Exit month {month} is outside the projected horizon 0-{ledger.horizon_months}",
                month=month,
                horizon=ledger.horizon_months,
            )

    return [analyze_exit(ledger, schedule, inputs, m, warnings) for m in exit_months]


def best_exit(results: list[ExitScenarioResult]) -> ExitScenarioResult | None:
    """Highest true ROE; ties go to the earliest exit."""
    if not results:
        return None
    return max(results, key=lambda r: (r.true_roe.sort_key(), -r.exit_month))
