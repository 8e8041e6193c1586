"""Canonical test fixtures used across all engine tests.

Fixture: AED 1M off-plan unit booked Jan 2025, handover Jan 2027 (month 24).
Plan: 20% down, 30% at 50% construction, 50% on handover.
Appreciation 8% construction, 10% growth for 3 years, 5% mature; 7% yield.
"""

import pytest
from decimal import Decimal

from src.models.assumptions import (
    AppreciationRates,
    MortgageInputs,
    OIInputs,
)
from src.models.milestones import MilestoneKind, MonthYear, PaymentMilestone


@pytest.fixture
def canonical_inputs() -> OIInputs:
    """Cash purchase from the worked example: exit one year after handover."""
    return OIInputs(
        base_price=Decimal("1000000"),
        booking_date=MonthYear(2025, 1),
        handover_date=MonthYear(2027, 1),
        down_payment_percent=Decimal("20"),
        milestones=[
            PaymentMilestone(
                kind=MilestoneKind.CONSTRUCTION,
                trigger_value=Decimal("50"),
                payment_percent=Decimal("30"),
                label="50% Construction",
            ),
        ],
        rental_yield_percent=Decimal("7"),
        rent_growth_rate=Decimal("0"),
        appreciation=AppreciationRates(
            construction=Decimal("8"),
            growth=Decimal("10"),
            mature=Decimal("5"),
            growth_period_years=3,
        ),
        exit_months=[36],
    )


@pytest.fixture
def post_handover_inputs() -> OIInputs:
    """40/60 plan: 20% down, 20% during construction, 60% over 24 months after handover."""
    return OIInputs(
        base_price=Decimal("2000000"),
        booking_date=MonthYear(2025, 1),
        handover_date=MonthYear(2027, 1),
        unit_size_sqft=Decimal("1000"),
        down_payment_percent=Decimal("20"),
        milestones=[
            PaymentMilestone(kind=MilestoneKind.TIME, trigger_value=Decimal("12"), payment_percent=Decimal("10")),
            PaymentMilestone(kind=MilestoneKind.TIME, trigger_value=Decimal("18"), payment_percent=Decimal("10")),
        ],
        has_post_handover_plan=True,
        on_handover_percent=Decimal("0"),
        post_handover_milestones=[
            PaymentMilestone(
                kind=MilestoneKind.POST_HANDOVER,
                trigger_value=Decimal(months),
                payment_percent=Decimal("10"),
            )
            for months in (4, 8, 12, 16, 20, 24)
        ],
        rental_yield_percent=Decimal("7"),
        appreciation=AppreciationRates(
            construction=Decimal("8"),
            growth=Decimal("10"),
            mature=Decimal("5"),
            growth_period_years=3,
        ),
    )


@pytest.fixture
def canonical_mortgage() -> MortgageInputs:
    """50% LTV at 4.5% over 25 years, drawn at handover to settle the handover payment."""
    return MortgageInputs(
        financing_percent=Decimal("50"),
        interest_rate=Decimal("4.5"),
        loan_term_years=25,
    )
