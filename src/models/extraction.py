"""Pydantic models for AI-extracted payment plans (brochures, sales offers)."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class ExtractedMilestone(BaseModel):
    type: Literal["time", "construction", "post-handover"]
    trigger_value: Decimal  # Months from booking, percent complete, or months after handover
    payment_percent: Decimal
    label: str | None = None
    is_handover: bool = False


class AIPaymentPlanResult(BaseModel):
    # Property info
    developer: str | None = None
    project_name: str | None = None
    unit_number: str | None = None
    unit_type: str | None = None
    size_sqft: Decimal | None = None
    purchase_price: Decimal | None = None

    # Plan
    down_payment_percent: Decimal = Decimal("0")
    milestones: list[ExtractedMilestone] = Field(default_factory=list)
    has_post_handover: bool = False
    on_handover_percent: Decimal | None = None
    post_handover_percent: Decimal | None = None

    # Handover: relative months, then an explicit month, then a quarter
    handover_month_from_booking: int | None = None
    handover_month: int | None = None  # 1-12
    handover_quarter: int | None = Field(default=None, ge=1, le=4)  # "Q4 2027" brochures
    handover_year: int | None = None

    confidence: int = 0  # 0-100
    warnings: list[str] = Field(default_factory=list)


class ClientInfo(BaseModel):
    developer: str | None = None
    project_name: str | None = None
    unit: str | None = None
    unit_type: str | None = None
    unit_size_sqft: Decimal | None = None
    unit_size_m2: Decimal | None = None
