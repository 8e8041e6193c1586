"""Mortgage amortization and financing analysis.

Pure functions: Decimal in, dataclass out. No I/O.
Rates are whole percents (4.5 = 4.5%/yr). Amounts keep full precision;
rounding is left to presentation.
"""

from dataclasses import dataclass
from decimal import Decimal

from src.config import settings
from src.models.assumptions import MortgageInputs

HUNDRED = Decimal("100")
ZERO = Decimal("0")
TIGHT_MARGIN = Decimal("0.10")  # Shortfall within 10% of debt service counts as tight


@dataclass(frozen=True)
class AmortizationPayment:
    period: int
    payment: Decimal
    principal: Decimal
    interest: Decimal
    balance: Decimal


@dataclass(frozen=True)
class AmortizationSchedule:
    payments: list[AmortizationPayment]
    monthly_payment: Decimal
    total_interest: Decimal
    total_principal: Decimal


@dataclass(frozen=True)
class AmortizationPoint:
    year: int
    balance: Decimal
    principal_paid: Decimal  # Cumulative
    interest_paid: Decimal   # Cumulative


@dataclass(frozen=True)
class StressScenario:
    rate: Decimal
    monthly_payment: Decimal
    net_cash_flow: Decimal
    status: str  # "positive", "tight" or "negative"


@dataclass
class MortgageSummary:
    # Gap: equity the buyer still owes at handover beyond pre-handover payments
    equity_required_percent: Decimal = ZERO
    pre_handover_percent: Decimal = ZERO
    gap_percent: Decimal = ZERO
    gap_amount: Decimal = ZERO

    # Loan
    loan_amount: Decimal = ZERO
    monthly_payment: Decimal = ZERO
    total_interest: Decimal = ZERO
    total_loan_payments: Decimal = ZERO

    # Fees
    processing_fee: Decimal = ZERO
    valuation_fee: Decimal = ZERO
    registration_fee: Decimal = ZERO
    total_upfront_fees: Decimal = ZERO

    # Insurance
    annual_life_insurance: Decimal = ZERO
    annual_property_insurance: Decimal = ZERO
    total_annual_insurance: Decimal = ZERO
    total_insurance_over_term: Decimal = ZERO

    # Totals
    total_cost_with_mortgage: Decimal = ZERO
    total_interest_and_fees: Decimal = ZERO

    amortization: list[AmortizationPoint] | None = None
    principal_paid_year_5: Decimal = ZERO
    principal_paid_year_10: Decimal = ZERO
    stress_scenarios: list[StressScenario] | None = None

    @property
    def has_gap(self) -> bool:
        return self.gap_percent > 0


def monthly_payment(principal: Decimal, annual_rate: Decimal, term_years: int) -> Decimal:
    """Fixed monthly payment: P * r(1+r)^n / ((1+r)^n - 1)."""
    n = term_years * 12
    if principal <= 0 or n <= 0:
        return ZERO
    if annual_rate <= 0:
        return principal / n

    r = annual_rate / HUNDRED / 12
    factor = (1 + r) ** n
    return principal * (r * factor) / (factor - 1)


def amortization_schedule(
    principal: Decimal,
    annual_rate: Decimal,
    term_years: int,
    periods: int | None = None,
) -> AmortizationSchedule:
    """Generate full or partial amortization schedule.

    Args:
        principal: Loan amount
        annual_rate: Annual interest rate, whole percent
        term_years: Loan term in years
        periods: If provided, only generate this many monthly payments
    """
    pmt = monthly_payment(principal, annual_rate, term_years)
    r = annual_rate / HUNDRED / 12
    n_periods = min(periods if periods is not None else term_years * 12, term_years * 12)

    payments: list[AmortizationPayment] = []
    balance = principal
    total_interest = ZERO
    total_principal = ZERO

    for period in range(1, n_periods + 1):
        if balance <= 0:
            break
        interest = balance * r
        principal_paid = pmt - interest

        # Final payment adjustment
        if principal_paid > balance or period == term_years * 12:
            principal_paid = balance
            actual_payment = interest + principal_paid
        else:
            actual_payment = pmt

        balance -= principal_paid
        total_interest += interest
        total_principal += principal_paid

        payments.append(AmortizationPayment(
            period=period,
            payment=actual_payment,
            principal=principal_paid,
            interest=interest,
            balance=balance,
        ))

    return AmortizationSchedule(
        payments=payments,
        monthly_payment=pmt,
        total_interest=total_interest,
        total_principal=total_principal,
    )


def yearly_amortization(schedule: AmortizationSchedule) -> list[AmortizationPoint]:
    """Year-end balance with cumulative principal and interest."""
    points: list[AmortizationPoint] = []
    principal_paid = ZERO
    interest_paid = ZERO

    for p in schedule.payments:
        principal_paid += p.principal
        interest_paid += p.interest
        if p.period % 12 == 0 or p.period == len(schedule.payments):
            points.append(AmortizationPoint(
                year=(p.period - 1) // 12 + 1,
                balance=max(ZERO, p.balance),
                principal_paid=principal_paid,
                interest_paid=interest_paid,
            ))

    return points


def loan_amount(mortgage: MortgageInputs, base_price: Decimal) -> Decimal:
    return base_price * mortgage.financing_percent / HUNDRED


def upfront_fees(mortgage: MortgageInputs, principal: Decimal) -> Decimal:
    """Processing, valuation and registration fees paid at origination."""
    return (
        principal * mortgage.processing_fee_percent / HUNDRED
        + mortgage.valuation_fee
        + principal * mortgage.registration_percent / HUNDRED
    )


def monthly_insurance(mortgage: MortgageInputs, principal: Decimal) -> Decimal:
    annual = principal * mortgage.life_insurance_percent / HUNDRED + mortgage.property_insurance
    return annual / 12


def _stress_status(cash_flow: Decimal, total_monthly_debt: Decimal) -> str:
    if cash_flow >= 0:
        return "positive"
    if cash_flow >= -total_monthly_debt * TIGHT_MARGIN:
        return "tight"
    return "negative"


def mortgage_summary(
    mortgage: MortgageInputs,
    base_price: Decimal,
    pre_handover_percent: Decimal,
    monthly_net_rent: Decimal = ZERO,
    principal: Decimal | None = None,
) -> MortgageSummary:
    """Full financing picture for a quote: gap, loan, fees, insurance, stress test.

    ``principal`` is the amount actually drawn when the ledger capped the
    loan below the requested LTV. It defaults to the requested loan.
    """
    equity_required = mortgage.equity_required_percent
    gap_percent = max(ZERO, equity_required - pre_handover_percent)

    if principal is None:
        principal = loan_amount(mortgage, base_price)
    pmt = monthly_payment(principal, mortgage.interest_rate, mortgage.loan_term_years)
    n = mortgage.loan_term_years * 12
    total_loan_payments = pmt * n
    total_interest = total_loan_payments - principal

    processing = principal * mortgage.processing_fee_percent / HUNDRED
    registration = principal * mortgage.registration_percent / HUNDRED
    fees = processing + mortgage.valuation_fee + registration

    annual_life = principal * mortgage.life_insurance_percent / HUNDRED
    annual_insurance = annual_life + mortgage.property_insurance
    insurance_over_term = annual_insurance * mortgage.loan_term_years

    equity_paid = base_price * equity_required / HUNDRED

    schedule = amortization_schedule(principal, mortgage.interest_rate, mortgage.loan_term_years)
    points = yearly_amortization(schedule)

    stress: list[StressScenario] = []
    for step in settings.stress_rate_steps:
        rate = mortgage.interest_rate + step
        payment = monthly_payment(principal, rate, mortgage.loan_term_years)
        total_debt = payment + annual_insurance / 12
        cash_flow = monthly_net_rent - total_debt
        stress.append(StressScenario(
            rate=rate,
            monthly_payment=payment,
            net_cash_flow=cash_flow,
            status=_stress_status(cash_flow, total_debt),
        ))

    return MortgageSummary(
        equity_required_percent=equity_required,
        pre_handover_percent=pre_handover_percent,
        gap_percent=gap_percent,
        gap_amount=base_price * gap_percent / HUNDRED,
        loan_amount=principal,
        monthly_payment=pmt,
        total_interest=total_interest,
        total_loan_payments=total_loan_payments,
        processing_fee=processing,
        valuation_fee=mortgage.valuation_fee,
        registration_fee=registration,
        total_upfront_fees=fees,
        annual_life_insurance=annual_life,
        annual_property_insurance=mortgage.property_insurance,
        total_annual_insurance=annual_insurance,
        total_insurance_over_term=insurance_over_term,
        total_cost_with_mortgage=equity_paid + total_loan_payments + fees + insurance_over_term,
        total_interest_and_fees=total_interest + fees + insurance_over_term,
        amortization=points,
        principal_paid_year_5=points[4].principal_paid if len(points) > 4 else ZERO,
        principal_paid_year_10=points[9].principal_paid if len(points) > 9 else ZERO,
        stress_scenarios=stress,
    )
