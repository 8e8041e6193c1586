from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from src.models.milestones import MonthYear, PaymentMilestone

HUNDRED = Decimal("100")


class RentalMode(Enum):
    LONG_TERM = "long-term"
    SHORT_TERM = "short-term"


@dataclass(frozen=True)
class AppreciationRates:
    """Annual appreciation by phase, whole percents (8 = 8%/yr)."""
    construction: Decimal = Decimal("12")
    growth: Decimal = Decimal("8")
    mature: Decimal = Decimal("4")
    growth_period_years: int = 5


@dataclass(frozen=True)
class ServiceCharge:
    """Owner's service charges, both components annual. Either may be zero."""
    per_sqft: Decimal = Decimal("0")           # Currency per sqft per year
    percent_of_value: Decimal = Decimal("0")   # Whole percent of current value per year

    def monthly(self, unit_size_sqft: Decimal, property_value: Decimal) -> Decimal:
        annual = unit_size_sqft * self.per_sqft + property_value * self.percent_of_value / HUNDRED
        return annual / 12


@dataclass(frozen=True)
class ShortTermRentalConfig:
    average_daily_rate: Decimal = Decimal("800")
    occupancy_percent: Decimal = Decimal("70")
    operating_expense_percent: Decimal = Decimal("25")
    management_fee_percent: Decimal = Decimal("15")
    adr_growth_rate: Decimal = Decimal("3")  # Whole percent per year of tenancy
    # Calendar-month demand multipliers (Jan..Dec); 1 = average month
    seasonal_factors: tuple[Decimal, ...] = tuple(Decimal("1") for _ in range(12))

    def __post_init__(self):
        if len(self.seasonal_factors) != 12:
            raise ValueError("seasonal_factors needs one entry per calendar month")


@dataclass(frozen=True)
class ExitCosts:
    agent_commission_percent: Decimal = Decimal("0")  # Of exit price
    noc_fee: Decimal = Decimal("0")                    # Developer NOC, flat


@dataclass(frozen=True)
class OIInputs:
    """Off-plan investment inputs. One immutable snapshot per projection run."""
    # Purchase
    base_price: Decimal
    booking_date: MonthYear
    handover_date: MonthYear
    currency: str = "AED"
    unit_size_sqft: Decimal = Decimal("0")

    # Payment plan
    down_payment_percent: Decimal = Decimal("20")
    milestones: list[PaymentMilestone] = field(default_factory=list)
    has_post_handover_plan: bool = False
    on_handover_percent: Decimal | None = None  # None = implicit residual
    post_handover_milestones: list[PaymentMilestone] = field(default_factory=list)

    # Income
    rental_mode: RentalMode = RentalMode.LONG_TERM
    rental_yield_percent: Decimal = Decimal("8.5")
    rent_growth_rate: Decimal = Decimal("4")
    service_charge: ServiceCharge = field(default_factory=ServiceCharge)
    short_term_rental: ShortTermRentalConfig | None = None

    # Appreciation
    appreciation: AppreciationRates = field(default_factory=AppreciationRates)

    # Entry & exit
    dld_fee_percent: Decimal = Decimal("0")  # Dubai Land Department transfer fee
    oqood_fee: Decimal = Decimal("0")        # Off-plan registration fee
    exit_costs: ExitCosts = field(default_factory=ExitCosts)
    minimum_exit_threshold_percent: Decimal | None = None  # Developer resale threshold
    exit_months: list[int] = field(default_factory=list)

    @property
    def handover_month(self) -> int:
        return self.booking_date.months_until(self.handover_date)

    @property
    def entry_costs(self) -> Decimal:
        return self.base_price * self.dld_fee_percent / HUNDRED + self.oqood_fee


@dataclass(frozen=True)
class MortgageInputs:
    financing_percent: Decimal = Decimal("60")  # Loan-to-value, whole percent
    interest_rate: Decimal = Decimal("4.5")     # Annual, whole percent
    loan_term_years: int = 25
    origination_month: int | None = None        # Projection month; None = handover

    # Fees
    processing_fee_percent: Decimal = Decimal("1")
    valuation_fee: Decimal = Decimal("3000")
    registration_percent: Decimal = Decimal("0.25")

    # Insurance
    life_insurance_percent: Decimal = Decimal("0.4")  # Annual, of loan amount
    property_insurance: Decimal = Decimal("1500")     # Annual, flat

    @property
    def equity_required_percent(self) -> Decimal:
        return HUNDRED - self.financing_percent
