"""Monthly projection engine.

Walks month 0 (booking) through the horizon and produces the ledger every
exit and coverage metric is read from: property value under the active
appreciation phase, payment plan cash-out, rent net of service charges and
mortgage debt service.

Pure computation. No I/O. Validated PaymentSchedule + OIInputs in,
ProjectionLedger out.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from src.config import settings
from src.engine.appreciation import Phase, build_phase_timeline
from src.engine.construction import LINEAR, ConstructionCurve, month_to_construction
from src.engine.debt import (
    amortization_schedule,
    loan_amount,
    monthly_insurance,
    upfront_fees,
)
from src.engine.errors import NumericWarning, OutOfRangeError, WarningCode
from src.engine.rental import (
    RentalIncomeModel,
    RentContext,
    comparison_model_for,
    income_model_for,
)
from src.models.assumptions import MortgageInputs, OIInputs, RentalMode
from src.models.milestones import PaymentSchedule
from src.models.results import MonthlyProjection, YearlyProjection

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")


@dataclass
class ProjectionLedger:
    months: list[MonthlyProjection]
    years: list[YearlyProjection]
    base_price: Decimal
    handover_month: int
    horizon_months: int
    loan_amount: Decimal = ZERO
    monthly_mortgage_payment: Decimal | None = None  # None = cash purchase
    origination_month: int | None = None
    loan_end_month: int | None = None  # Month of the final scheduled payment
    warnings: list[NumericWarning] = field(default_factory=list)

    @property
    def has_mortgage(self) -> bool:
        return self.monthly_mortgage_payment is not None

    def month(self, month: int) -> MonthlyProjection:
        if month < 0 or month > self.horizon_months:
            raise OutOfRangeError(
                f"Month {month} is outside the projected horizon 0-{self.horizon_months}; "
                "extend the horizon and re-run",
                month=month,
                horizon=self.horizon_months,
            )
        return self.months[month]


def required_horizon(
    schedule: PaymentSchedule,
    exit_months: list[int] | None = None,
    origination_month: int | None = None,
    default_years: int | None = None,
    max_years: int | None = None,
) -> int:
    """Months to project: longest of the default horizon, the last payment and the last exit.

    Raises:
        OutOfRangeError: the required horizon exceeds the cap.
    """
    default_years = settings.default_horizon_years if default_years is None else default_years
    max_years = settings.max_horizon_years if max_years is None else max_years

    candidates = [default_years * 12, schedule.last_payment_month, schedule.handover_month]
    if exit_months:
        candidates.append(max(exit_months))
    if origination_month is not None:
        candidates.append(origination_month + 1)

    horizon = max(candidates)
    cap = max_years * 12
    if horizon > cap:
        raise OutOfRangeError(
            f"Projection needs {horizon} months but the horizon is capped at {cap}",
            month=horizon,
            horizon=cap,
        )
    return horizon


def _allocate_loan(
    schedule: PaymentSchedule,
    origination: int,
    requested: Decimal,
) -> tuple[Decimal, dict[int, Decimal]]:
    """Apply the loan to installments due from origination on, earliest first.

    Returns (principal actually drawn, financed amount by month). The loan can
    never exceed what is still owed at origination.
    """
    remaining = requested
    financed: dict[int, Decimal] = {}
    for event in schedule.events:
        if event.month < origination or remaining <= 0:
            continue
        portion = min(event.amount, remaining)
        financed[event.month] = financed.get(event.month, ZERO) + portion
        remaining -= portion
    return requested - remaining, financed


def build_ledger(
    schedule: PaymentSchedule,
    inputs: OIInputs,
    mortgage: MortgageInputs | None = None,
    horizon_months: int | None = None,
    income_model: RentalIncomeModel | None = None,
    construction_curve: ConstructionCurve = LINEAR,
) -> ProjectionLedger:
    """Run the month-by-month projection.

    Args:
        schedule: Resolved payment plan
        inputs: Projection assumptions
        mortgage: Loan terms, or None for a cash purchase
        horizon_months: Last month to project; defaults to required_horizon()
        income_model: Overrides the strategy picked from inputs.rental_mode
        construction_curve: Used only for the reported construction percent
    """
    handover = schedule.handover_month
    origination = None
    if mortgage is not None:
        origination = mortgage.origination_month if mortgage.origination_month is not None else handover

    if horizon_months is None:
        horizon_months = required_horizon(schedule, inputs.exit_months, origination)
    elif horizon_months < 0 or horizon_months > settings.max_horizon_years * 12:
        raise OutOfRangeError(
            f"Horizon of {horizon_months} months is outside 0-{settings.max_horizon_years * 12}",
            month=horizon_months,
            horizon=settings.max_horizon_years * 12,
        )

    timeline = build_phase_timeline(handover, inputs.appreciation)
    model = income_model or income_model_for(inputs)
    comparison = None if inputs.rental_mode is RentalMode.SHORT_TERM else comparison_model_for(inputs)
    warnings: list[NumericWarning] = []

    # Mortgage setup
    principal = ZERO
    financed_by_month: dict[int, Decimal] = {}
    payments_by_month = {}
    pmt = None
    fees = ZERO
    insurance = ZERO
    loan_end = None
    if mortgage is not None:
        requested = loan_amount(mortgage, inputs.base_price)
        principal, financed_by_month = _allocate_loan(schedule, origination, requested)
        if principal < requested:
            message = (
                f"Loan capped at {principal} (requested {requested}): "
                f"only {principal} is still owed at origination month {origination}"
            )
            logger.warning(message)
            warnings.append(NumericWarning(WarningCode.LOAN_CAPPED, message, origination))

        amort = amortization_schedule(principal, mortgage.interest_rate, mortgage.loan_term_years)
        pmt = amort.monthly_payment
        payments_by_month = {origination + p.period: p for p in amort.payments}
        loan_end = origination + len(amort.payments) if amort.payments else origination
        if principal > 0:
            fees = upfront_fees(mortgage, principal)
            insurance = monthly_insurance(mortgage, principal)

    months: list[MonthlyProjection] = []
    value = inputs.base_price
    handover_value = value
    capital = ZERO
    cumulative_rent = ZERO
    financing_costs = ZERO
    balance = ZERO
    shortfall_months: list[int] = []

    for m in range(horizon_months + 1):
        regime = timeline.regime_for(m)
        if m > 0:
            value = value * (ONE + regime.monthly_rate)
        if m == handover:
            handover_value = value
        calendar = inputs.booking_date.add_months(m)

        # Payment plan
        due = schedule.amount_due(m)
        financed = financed_by_month.get(m, ZERO)
        out_of_pocket = due - financed
        if m == 0:
            out_of_pocket += inputs.entry_costs

        # Debt
        payment = ZERO
        interest = ZERO
        principal_paid = ZERO
        insurance_cost = ZERO
        if origination is not None and m == origination and principal > 0:
            balance = principal
            out_of_pocket += fees
        scheduled = payments_by_month.get(m)
        if scheduled is not None:
            payment = scheduled.payment
            interest = scheduled.interest
            principal_paid = scheduled.principal
            balance = scheduled.balance
            insurance_cost = insurance
            out_of_pocket += principal_paid
        capital += out_of_pocket

        # Rent: tenancy starts at handover, first rent collected a month later
        gross = ZERO
        service = ZERO
        net = ZERO
        airbnb = None
        if m > handover:
            ctx = RentContext(
                month=m,
                tenancy_year=(m - handover - 1) // 12,
                calendar_month=calendar.month,
                property_value=value,
                handover_value=handover_value,
            )
            gross = model.monthly_income(ctx)
            service = inputs.service_charge.monthly(inputs.unit_size_sqft, value)
            net = gross - service
            if net < 0:
                shortfall_months.append(m)
                net = ZERO
            if inputs.rental_mode is RentalMode.SHORT_TERM:
                airbnb = net
            elif comparison is not None:
                airbnb = max(ZERO, comparison.monthly_income(ctx) - service)
        elif inputs.rental_mode is RentalMode.SHORT_TERM or comparison is not None:
            airbnb = ZERO

        cumulative_rent += net
        financing_costs += interest + insurance_cost

        months.append(MonthlyProjection(
            month=m,
            calendar_year=calendar.year,
            calendar_month=calendar.month,
            phase=regime.phase.value,
            is_construction=m < handover,
            is_handover=m == handover,
            construction_percent=month_to_construction(m, handover, construction_curve),
            property_value=value,
            payment_due=due,
            financed_amount=financed,
            out_of_pocket=out_of_pocket,
            capital_deployed=capital,
            gross_rent=gross,
            service_charges=service,
            net_rent=net,
            airbnb_net_income=airbnb,
            cumulative_net_rent=cumulative_rent,
            mortgage_payment=payment,
            interest_paid=interest,
            principal_paid=principal_paid,
            insurance_cost=insurance_cost,
            cumulative_financing_costs=financing_costs,
            loan_balance=balance,
            equity=value - balance,
            net_cash_flow=net - payment - insurance_cost,
        ))

    if shortfall_months:
        message = (
            f"Service charges exceed rent in {len(shortfall_months)} month(s) "
            f"starting month {shortfall_months[0]}; net rent floored at zero"
        )
        logger.warning(message)
        warnings.append(NumericWarning(WarningCode.NEGATIVE_NET_RENT, message, shortfall_months[0]))

    logger.debug(
        "Projected %d months (handover %d, mortgage %s), final value %s",
        horizon_months, handover, "yes" if mortgage else "no", value,
    )

    return ProjectionLedger(
        months=months,
        years=yearly_rollup(months, handover),
        base_price=inputs.base_price,
        handover_month=handover,
        horizon_months=horizon_months,
        loan_amount=principal,
        monthly_mortgage_payment=pmt,
        origination_month=origination,
        loan_end_month=loan_end,
        warnings=warnings,
    )


def yearly_rollup(months: list[MonthlyProjection], handover_month: int) -> list[YearlyProjection]:
    """Aggregate the monthly ledger by projection year.

    Year y covers months (y-1)*12+1 .. y*12, so every full year is twelve
    months long. Month 0 is the booking instant: its cash-outs (down
    payment, entry costs) are folded into year 1's sums but it does not
    count towards year 1's months or average value. The last year may be
    partial.
    """
    if not months:
        return []
    booking = months[0]
    horizon = months[-1].month
    handover_year = 1 if handover_month <= 0 else (handover_month - 1) // 12 + 1

    years: list[YearlyProjection] = []
    year = 1
    start = 1
    while year == 1 or start <= horizon:
        end = min(year * 12, horizon)
        block = months[start:end + 1]
        flows = [booking] + block if year == 1 else block
        valued = block or [booking]  # horizon 0: nothing after booking
        last = valued[-1]
        airbnb_values = [p.airbnb_net_income for p in flows if p.airbnb_net_income is not None]

        years.append(YearlyProjection(
            year=year,
            start_month=start,
            end_month=end,
            calendar_year=last.calendar_year,
            is_construction=year < handover_year,
            is_handover=year == handover_year,
            months=len(block),
            gross_rent=sum((p.gross_rent for p in flows), ZERO),
            service_charges=sum((p.service_charges for p in flows), ZERO),
            net_rent=sum((p.net_rent for p in flows), ZERO),
            airbnb_net_income=sum(airbnb_values, ZERO) if airbnb_values else None,
            payments_made=sum((p.payment_due for p in flows), ZERO),
            debt_service=sum((p.mortgage_payment for p in flows), ZERO),
            interest_paid=sum((p.interest_paid for p in flows), ZERO),
            principal_paid=sum((p.principal_paid for p in flows), ZERO),
            net_cash_flow=sum((p.net_cash_flow for p in flows), ZERO),
            average_property_value=sum((p.property_value for p in valued), ZERO) / len(valued),
            property_value=last.property_value,
            capital_deployed=last.capital_deployed,
            loan_balance=last.loan_balance,
            equity=last.equity,
        ))
        year += 1
        start = end + 1

    return years


def phase_months(ledger: ProjectionLedger) -> dict[str, int]:
    """Number of projected months spent in each appreciation phase."""
    counts = {phase.value: 0 for phase in Phase}
    for p in ledger.months:
        counts[p.phase] += 1
    return counts
