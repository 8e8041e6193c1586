from dataclasses import dataclass, field
from decimal import Decimal

from src.models.ratio import Ratio


@dataclass
class MonthlyProjection:
    month: int  # 0 = booking
    calendar_year: int
    calendar_month: int
    phase: str
    is_construction: bool
    is_handover: bool
    construction_percent: Decimal = Decimal("0")

    # Value
    property_value: Decimal = Decimal("0")

    # Payment plan
    payment_due: Decimal = Decimal("0")      # Owed to the developer this month
    financed_amount: Decimal = Decimal("0")  # Portion of payment_due covered by the loan
    out_of_pocket: Decimal = Decimal("0")    # Investor cash this month (payments, fees, principal)
    capital_deployed: Decimal = Decimal("0")  # Cumulative out_of_pocket

    # Income
    gross_rent: Decimal = Decimal("0")
    service_charges: Decimal = Decimal("0")
    net_rent: Decimal = Decimal("0")
    airbnb_net_income: Decimal | None = None
    cumulative_net_rent: Decimal = Decimal("0")

    # Debt
    mortgage_payment: Decimal = Decimal("0")
    interest_paid: Decimal = Decimal("0")
    principal_paid: Decimal = Decimal("0")
    insurance_cost: Decimal = Decimal("0")
    cumulative_financing_costs: Decimal = Decimal("0")  # Interest + insurance to date
    loan_balance: Decimal = Decimal("0")

    # Position
    equity: Decimal = Decimal("0")  # Value - loan balance
    net_cash_flow: Decimal = Decimal("0")  # Net rent - debt service - insurance


@dataclass
class YearlyProjection:
    year: int  # 1-indexed; year 1 also holds booking month 0
    start_month: int
    end_month: int
    calendar_year: int
    is_construction: bool
    is_handover: bool
    months: int = 12

    gross_rent: Decimal = Decimal("0")
    service_charges: Decimal = Decimal("0")
    net_rent: Decimal = Decimal("0")
    airbnb_net_income: Decimal | None = None
    payments_made: Decimal = Decimal("0")
    debt_service: Decimal = Decimal("0")
    interest_paid: Decimal = Decimal("0")
    principal_paid: Decimal = Decimal("0")
    net_cash_flow: Decimal = Decimal("0")

    average_property_value: Decimal = Decimal("0")
    property_value: Decimal = Decimal("0")  # Year end
    capital_deployed: Decimal = Decimal("0")  # Year end, cumulative
    loan_balance: Decimal = Decimal("0")
    equity: Decimal = Decimal("0")


@dataclass
class ExitScenarioResult:
    exit_month: int
    calendar_year: int
    calendar_month: int
    is_handover_exit: bool

    exit_price: Decimal = Decimal("0")
    base_price: Decimal = Decimal("0")
    appreciation: Decimal = Decimal("0")
    appreciation_percent: Decimal = Decimal("0")

    # Capital
    plan_capital: Decimal = Decimal("0")     # Deployed per the payment plan and loan
    advance_required: Decimal = Decimal("0")  # Extra needed to reach the resale threshold
    total_capital_deployed: Decimal = Decimal("0")

    # Income and costs while held
    cumulative_net_rent: Decimal = Decimal("0")
    financing_costs: Decimal = Decimal("0")  # Interest + insurance

    # Settlement
    loan_payoff: Decimal = Decimal("0")
    unpaid_installments: Decimal = Decimal("0")  # Assumed by the buyer
    agent_commission: Decimal = Decimal("0")
    noc_fee: Decimal = Decimal("0")
    exit_costs: Decimal = Decimal("0")

    true_profit: Decimal = Decimal("0")
    true_roe: Ratio = field(default_factory=Ratio.undefined)
    annualized_roe: Ratio = field(default_factory=Ratio.undefined)
    irr: Ratio = field(default_factory=Ratio.undefined)


@dataclass
class DscrPoint:
    month: int
    dscr: Ratio
    band: str  # "strong", "adequate" or "shortfall"


@dataclass
class PostHandoverCoverage:
    total_due: Decimal = Decimal("0")
    months: int = 0
    monthly_equivalent: Decimal = Decimal("0")
    monthly_rent: Decimal = Decimal("0")  # Average net rent over the plan
    monthly_cash_flow: Decimal = Decimal("0")
    coverage_percent: Decimal = Decimal("0")
    total_gap: Decimal = Decimal("0")
    status: str = "none"  # "full", "partial" or "none"

    @property
    def is_fully_covered(self) -> bool:
        return self.status == "full"
