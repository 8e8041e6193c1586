"""Payment plan routes: apply an AI-extracted plan to the current quote."""

from fastapi import APIRouter, HTTPException

from src.api.routes.projection import build_inputs
from src.api.schemas import ApplyPlanRequest, ApplyPlanResponse, MilestoneIn, MonthYearIn, ProjectionRequest
from src.engine.extraction import apply_extracted_plan
from src.models.assumptions import OIInputs
from src.models.milestones import MonthYear, PaymentMilestone

router = APIRouter(prefix="/api/v1/payment-plan", tags=["payment-plan"])


def _milestone_out(m: PaymentMilestone) -> MilestoneIn:
    return MilestoneIn(
        kind=m.kind.value,
        trigger_value=m.trigger_value,
        payment_percent=m.payment_percent,
        label=m.label,
        id=m.id,
        is_handover=m.is_handover,
    )


def _request_from_inputs(inputs: OIInputs, template: ProjectionRequest) -> ProjectionRequest:
    """Fold updated engine inputs back into a request body the client can re-post."""
    return template.model_copy(update={
        "base_price": inputs.base_price,
        "booking": MonthYearIn(year=inputs.booking_date.year, month=inputs.booking_date.month),
        "handover": MonthYearIn(year=inputs.handover_date.year, month=inputs.handover_date.month),
        "unit_size_sqft": inputs.unit_size_sqft,
        "down_payment_percent": inputs.down_payment_percent,
        "milestones": [_milestone_out(m) for m in inputs.milestones],
        "has_post_handover_plan": inputs.has_post_handover_plan,
        "on_handover_percent": inputs.on_handover_percent,
        "post_handover_milestones": [_milestone_out(m) for m in inputs.post_handover_milestones],
    })


@router.post("/apply", response_model=ApplyPlanResponse)
async def apply_plan(req: ApplyPlanRequest):
    """Merge an extracted plan into the quote. Does not run the projection."""
    try:
        current = build_inputs(req.current)
        booking = MonthYear(year=req.booking.year, month=req.booking.month)
        applied = apply_extracted_plan(req.plan, booking, current)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ApplyPlanResponse(
        inputs=_request_from_inputs(applied.inputs, req.current),
        client_info=applied.client_info,
        warnings=applied.warnings,
    )
