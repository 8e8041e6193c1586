"""Map an AI-extracted payment plan onto projection inputs.

The extractor itself lives outside the engine; this only converts its
result into OIInputs the resolver accepts. Percent totals are not checked
here: resolve_schedule() rejects an inconsistent plan.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP

from src.config import settings
from src.models.assumptions import OIInputs
from src.models.extraction import AIPaymentPlanResult, ClientInfo, ExtractedMilestone
from src.models.milestones import MilestoneKind, MonthYear, PaymentMilestone

logger = logging.getLogger(__name__)

SQFT_TO_M2 = Decimal("0.092903")
ONE_PLACE = Decimal("0.1")

_PAYMENT_WORD = re.compile(r"Payment", re.IGNORECASE)
_TRAILING_MONTH_YEAR = re.compile(
    r"\s+(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|Jun(?:e)?|Jul(?:y)?|"
    r"Aug(?:ust)?|Sep(?:tember)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\s+\d{4}\s*$",
    re.IGNORECASE,
)
_TRAILING_YEAR = re.compile(r"\s+\d{4}\s*$")


@dataclass
class AppliedPlan:
    inputs: OIInputs
    client_info: ClientInfo
    warnings: list[str] = field(default_factory=list)


def clean_label(label: str | None) -> str:
    """'1st Payment February 2026' -> '1st Installment'."""
    if not label:
        return ""
    cleaned = _PAYMENT_WORD.sub("Installment", label)
    cleaned = _TRAILING_MONTH_YEAR.sub("", cleaned)
    cleaned = _TRAILING_YEAR.sub("", cleaned)
    return cleaned.strip() or label


def sqft_to_m2(sqft: Decimal) -> Decimal:
    return (Decimal(sqft) * SQFT_TO_M2).quantize(ONE_PLACE, rounding=ROUND_HALF_UP)


def _to_milestone(m: ExtractedMilestone, milestone_id: str) -> PaymentMilestone:
    kind = MilestoneKind(m.type)
    return PaymentMilestone(
        kind=kind,
        trigger_value=m.trigger_value,
        payment_percent=m.payment_percent,
        label=clean_label(m.label),
        id=milestone_id,
        is_handover=m.is_handover and kind is not MilestoneKind.POST_HANDOVER,
    )


def _handover_date(plan: AIPaymentPlanResult, booking: MonthYear, current: MonthYear) -> MonthYear:
    if plan.handover_month_from_booking:
        return booking.add_months(plan.handover_month_from_booking)
    if plan.handover_month and plan.handover_year:
        return MonthYear(year=plan.handover_year, month=plan.handover_month)
    if plan.handover_quarter and plan.handover_year:
        return MonthYear.from_quarter(plan.handover_quarter, plan.handover_year)
    return current


def extract_client_info(plan: AIPaymentPlanResult) -> ClientInfo:
    return ClientInfo(
        developer=plan.developer,
        project_name=plan.project_name,
        unit=plan.unit_number,
        unit_type=plan.unit_type,
        unit_size_sqft=plan.size_sqft,
        unit_size_m2=sqft_to_m2(plan.size_sqft) if plan.size_sqft else None,
    )


def apply_extracted_plan(
    plan: AIPaymentPlanResult,
    booking: MonthYear,
    current_inputs: OIInputs,
) -> AppliedPlan:
    """Merge an extracted plan into the current inputs.

    Pre-handover milestones (including handover-flagged ones) keep their
    order; post-handover milestones are sorted by months after handover and
    only kept when the plan says it has a post-handover phase. Fields the
    extractor did not find keep their current values.
    """
    pre_handover = [
        _to_milestone(m, f"ai-{idx}")
        for idx, m in enumerate(plan.milestones)
        if m.type != MilestoneKind.POST_HANDOVER.value
    ]

    post_handover: list[PaymentMilestone] = []
    if plan.has_post_handover:
        post_handover = sorted(
            (
                _to_milestone(m, f"ai-post-{idx}")
                for idx, m in enumerate(plan.milestones)
                if m.type == MilestoneKind.POST_HANDOVER.value
            ),
            key=lambda m: m.trigger_value,
        )

    updates = {
        "booking_date": booking,
        "handover_date": _handover_date(plan, booking, current_inputs.handover_date),
        "down_payment_percent": plan.down_payment_percent,
        "milestones": pre_handover,
        "has_post_handover_plan": plan.has_post_handover,
        "on_handover_percent": plan.on_handover_percent or None,
        "post_handover_milestones": post_handover,
    }
    if plan.purchase_price:
        updates["base_price"] = plan.purchase_price
    if plan.size_sqft:
        updates["unit_size_sqft"] = plan.size_sqft

    warnings = list(plan.warnings)
    if plan.confidence < settings.extraction_min_confidence:
        message = (
            f"Extraction confidence {plan.confidence}% is below "
            f"{settings.extraction_min_confidence}%; review the plan before relying on it"
        )
        logger.warning(message)
        warnings.append(message)

    if plan.has_post_handover and plan.post_handover_percent is not None:
        listed = sum((m.payment_percent for m in post_handover), Decimal("0"))
        if listed != plan.post_handover_percent:
            message = (
                f"Post-handover installments add up to {listed}% but the plan states "
                f"{plan.post_handover_percent}%"
            )
            logger.warning(message)
            warnings.append(message)

    logger.debug(
        "Applied extracted plan: %d pre-handover, %d post-handover milestones",
        len(pre_handover), len(post_handover),
    )

    return AppliedPlan(
        inputs=replace(current_inputs, **updates),
        client_info=extract_client_info(plan),
        warnings=warnings,
    )
