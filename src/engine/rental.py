"""Rental income models.

The projection loop asks a RentalIncomeModel for one month's income and
stays the same whatever the income source is. Income is reported before
service charges; the engine deducts those itself.

Long-term: yield on the handover value, escalated every 12 months of tenancy.
Short-term: pluggable net-income function of (config, ADR, calendar month).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Protocol

from src.models.assumptions import OIInputs, RentalMode, ShortTermRentalConfig

HUNDRED = Decimal("100")
ONE = Decimal("1")
DAYS_PER_MONTH = Decimal("365") / Decimal("12")


@dataclass(frozen=True)
class RentContext:
    month: int              # Projection month
    tenancy_year: int       # 0 for the first 12 rent months after handover
    calendar_month: int     # 1-12
    property_value: Decimal
    handover_value: Decimal


class RentalIncomeModel(Protocol):
    def monthly_income(self, ctx: RentContext) -> Decimal:
        """Income for one month, before service charges."""
        ...


class LongTermYieldModel:
    def __init__(self, rental_yield_percent: Decimal, rent_growth_percent: Decimal):
        self.rental_yield_percent = rental_yield_percent
        self.rent_growth_percent = rent_growth_percent

    def monthly_income(self, ctx: RentContext) -> Decimal:
        first_year = ctx.handover_value * self.rental_yield_percent / HUNDRED / 12
        return first_year * (ONE + self.rent_growth_percent / HUNDRED) ** ctx.tenancy_year


# (config, ADR for this tenancy year, calendar month) -> monthly net before service charges
ShortTermIncomeFn = Callable[[ShortTermRentalConfig, Decimal, int], Decimal]


def default_short_term_net(config: ShortTermRentalConfig, adr: Decimal, calendar_month: int) -> Decimal:
    """ADR x booked nights, less operating expenses and management fee."""
    nights = DAYS_PER_MONTH * config.occupancy_percent / HUNDRED
    gross = adr * nights * config.seasonal_factors[calendar_month - 1]
    expense_share = (config.operating_expense_percent + config.management_fee_percent) / HUNDRED
    return gross * (ONE - expense_share)


class ShortTermRentalModel:
    def __init__(
        self,
        config: ShortTermRentalConfig,
        net_income_fn: ShortTermIncomeFn = default_short_term_net,
    ):
        self.config = config
        self.net_income_fn = net_income_fn

    def monthly_income(self, ctx: RentContext) -> Decimal:
        growth = (ONE + self.config.adr_growth_rate / HUNDRED) ** ctx.tenancy_year
        adr = self.config.average_daily_rate * growth
        return self.net_income_fn(self.config, adr, ctx.calendar_month)


def income_model_for(inputs: OIInputs) -> RentalIncomeModel:
    """Pick the income strategy for `inputs.rental_mode`."""
    if inputs.rental_mode is RentalMode.SHORT_TERM:
        return ShortTermRentalModel(inputs.short_term_rental or ShortTermRentalConfig())
    return LongTermYieldModel(inputs.rental_yield_percent, inputs.rent_growth_rate)


def comparison_model_for(inputs: OIInputs) -> RentalIncomeModel | None:
    """Short-term model reported alongside long-term rent, if configured."""
    if inputs.short_term_rental is None:
        return None
    return ShortTermRentalModel(inputs.short_term_rental)
