"""Pydantic schemas for API request/response models."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from src.models.extraction import AIPaymentPlanResult, ClientInfo


# ---- Request schemas ----

class MonthYearIn(BaseModel):
    year: int = Field(..., ge=1900, le=2200)
    month: int = Field(..., ge=1, le=12)


class MilestoneIn(BaseModel):
    kind: Literal["time", "construction", "handover", "post-handover"]
    trigger_value: Decimal = Decimal("0")
    payment_percent: Decimal = Field(..., description="Whole percent of base price")
    label: str = ""
    id: str = ""
    is_handover: bool = False


class AppreciationIn(BaseModel):
    construction: Decimal = Decimal("12")
    growth: Decimal = Decimal("8")
    mature: Decimal = Decimal("4")
    growth_period_years: int = Field(5, ge=0)


class ServiceChargeIn(BaseModel):
    per_sqft: Decimal = Decimal("0")
    percent_of_value: Decimal = Decimal("0")


class ShortTermRentalIn(BaseModel):
    average_daily_rate: Decimal = Decimal("800")
    occupancy_percent: Decimal = Decimal("70")
    operating_expense_percent: Decimal = Decimal("25")
    management_fee_percent: Decimal = Decimal("15")
    adr_growth_rate: Decimal = Decimal("3")
    seasonal_factors: list[Decimal] | None = Field(None, min_length=12, max_length=12)


class ExitCostsIn(BaseModel):
    agent_commission_percent: Decimal = Decimal("0")
    noc_fee: Decimal = Decimal("0")


class MortgageIn(BaseModel):
    financing_percent: Decimal = Field(Decimal("60"), ge=0, le=100)
    interest_rate: Decimal = Field(Decimal("4.5"), ge=0)
    loan_term_years: int = Field(25, ge=1, le=40)
    origination_month: int | None = Field(None, ge=0)
    processing_fee_percent: Decimal = Decimal("1")
    valuation_fee: Decimal = Decimal("3000")
    registration_percent: Decimal = Decimal("0.25")
    life_insurance_percent: Decimal = Decimal("0.4")
    property_insurance: Decimal = Decimal("1500")


class ProjectionRequest(BaseModel):
    """Quote inputs. Percentages are whole numbers (6.8 = 6.8%)."""
    base_price: Decimal = Field(..., gt=0)
    booking: MonthYearIn
    handover: MonthYearIn
    currency: str = "AED"
    unit_size_sqft: Decimal = Decimal("0")

    down_payment_percent: Decimal = Decimal("20")
    milestones: list[MilestoneIn] = []
    has_post_handover_plan: bool = False
    on_handover_percent: Decimal | None = None
    post_handover_milestones: list[MilestoneIn] = []

    rental_mode: Literal["long-term", "short-term"] = "long-term"
    rental_yield_percent: Decimal = Decimal("8.5")
    rent_growth_rate: Decimal = Decimal("4")
    service_charge: ServiceChargeIn = ServiceChargeIn()
    short_term_rental: ShortTermRentalIn | None = None

    appreciation: AppreciationIn = AppreciationIn()

    dld_fee_percent: Decimal = Decimal("0")
    oqood_fee: Decimal = Decimal("0")
    exit_costs: ExitCostsIn = ExitCostsIn()
    minimum_exit_threshold_percent: Decimal | None = None
    exit_months: list[int] = []

    mortgage: MortgageIn | None = None
    horizon_months: int | None = Field(None, ge=0)
    construction_curve: Literal["linear", "s-curve"] = "linear"
    include_monthly: bool = True


class ApplyPlanRequest(BaseModel):
    plan: AIPaymentPlanResult
    booking: MonthYearIn
    current: ProjectionRequest


# ---- Response schemas ----

class RatioResponse(BaseModel):
    kind: str  # "finite" | "infinite" | "undefined"
    value: Decimal | None = None
    negative: bool = False
    display: str


class WarningResponse(BaseModel):
    code: str
    message: str
    month: int | None = None


class PaymentEventResponse(BaseModel):
    month: int
    calendar_year: int
    calendar_month: int
    amount: Decimal
    percent: Decimal
    labels: list[str]
    is_handover: bool
    is_post_handover: bool


class ScheduleResponse(BaseModel):
    handover_month: int
    total_amount: Decimal
    down_payment_percent: Decimal
    pre_handover_percent: Decimal
    handover_percent: Decimal
    post_handover_percent: Decimal
    earliest_resale_month: int | None = None  # Set when a resale threshold applies
    events: list[PaymentEventResponse]


class MonthlyProjectionResponse(BaseModel):
    month: int
    calendar_year: int
    calendar_month: int
    phase: str
    is_construction: bool
    is_handover: bool
    construction_percent: Decimal
    property_value: Decimal
    payment_due: Decimal
    financed_amount: Decimal
    out_of_pocket: Decimal
    capital_deployed: Decimal
    gross_rent: Decimal
    service_charges: Decimal
    net_rent: Decimal
    airbnb_net_income: Decimal | None = None
    cumulative_net_rent: Decimal
    mortgage_payment: Decimal
    interest_paid: Decimal
    principal_paid: Decimal
    insurance_cost: Decimal
    cumulative_financing_costs: Decimal
    loan_balance: Decimal
    equity: Decimal
    net_cash_flow: Decimal


class YearlyProjectionResponse(BaseModel):
    year: int
    start_month: int
    end_month: int
    calendar_year: int
    is_construction: bool
    is_handover: bool
    months: int
    gross_rent: Decimal
    service_charges: Decimal
    net_rent: Decimal
    airbnb_net_income: Decimal | None = None
    payments_made: Decimal
    debt_service: Decimal
    interest_paid: Decimal
    principal_paid: Decimal
    net_cash_flow: Decimal
    average_property_value: Decimal
    property_value: Decimal
    capital_deployed: Decimal
    loan_balance: Decimal
    equity: Decimal


class ExitScenarioResponse(BaseModel):
    exit_month: int
    calendar_year: int
    calendar_month: int
    is_handover_exit: bool
    exit_price: Decimal
    appreciation: Decimal
    appreciation_percent: Decimal
    plan_capital: Decimal
    advance_required: Decimal
    total_capital_deployed: Decimal
    cumulative_net_rent: Decimal
    financing_costs: Decimal
    loan_payoff: Decimal
    unpaid_installments: Decimal
    exit_costs: Decimal
    true_profit: Decimal
    true_roe: RatioResponse
    annualized_roe: RatioResponse
    irr: RatioResponse


class DscrPointResponse(BaseModel):
    month: int
    dscr: RatioResponse
    band: str


class PostHandoverCoverageResponse(BaseModel):
    total_due: Decimal
    months: int
    monthly_equivalent: Decimal
    monthly_rent: Decimal
    monthly_cash_flow: Decimal
    coverage_percent: Decimal
    total_gap: Decimal
    status: str


class StressScenarioResponse(BaseModel):
    rate: Decimal
    monthly_payment: Decimal
    net_cash_flow: Decimal
    status: str


class AmortizationPointResponse(BaseModel):
    year: int
    balance: Decimal
    principal_paid: Decimal
    interest_paid: Decimal


class MortgageSummaryResponse(BaseModel):
    equity_required_percent: Decimal
    pre_handover_percent: Decimal
    gap_percent: Decimal
    gap_amount: Decimal
    has_gap: bool
    loan_amount: Decimal
    monthly_payment: Decimal
    total_interest: Decimal
    total_upfront_fees: Decimal
    total_annual_insurance: Decimal
    total_cost_with_mortgage: Decimal
    total_interest_and_fees: Decimal
    principal_paid_year_5: Decimal
    principal_paid_year_10: Decimal
    amortization: list[AmortizationPointResponse] = []
    stress_scenarios: list[StressScenarioResponse] = []


class ProjectionResponse(BaseModel):
    currency: str
    handover_month: int
    horizon_months: int
    schedule: ScheduleResponse
    monthly: list[MonthlyProjectionResponse] = []
    yearly: list[YearlyProjectionResponse]
    phase_months: dict[str, int] = {}
    exits: list[ExitScenarioResponse]
    best_exit_month: int | None = None
    dscr: list[DscrPointResponse] = []
    post_handover_coverage: PostHandoverCoverageResponse | None = None
    mortgage_summary: MortgageSummaryResponse | None = None
    warnings: list[WarningResponse] = []


class ApplyPlanResponse(BaseModel):
    inputs: ProjectionRequest
    client_info: ClientInfo
    warnings: list[str] = []
