"""Payment schedule resolution.

Turns milestone definitions into a concrete, month-ordered list of cash
outflows. Malformed plans raise ScheduleError here so the projection engine
only ever sees a validated schedule.

Pure functions. No I/O.
"""

import logging
from decimal import Decimal

from src.engine.construction import LINEAR, ConstructionCurve, construction_to_month, round_month
from src.engine.errors import ScheduleError
from src.models.assumptions import OIInputs
from src.models.milestones import (
    MilestoneKind,
    PaymentEvent,
    PaymentMilestone,
    PaymentSchedule,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")
PERCENT_TOLERANCE = Decimal("0.000001")

DOWN_PAYMENT_LABEL = "Downpayment"
HANDOVER_LABEL = "Handover"


def _check_percent(milestone: PaymentMilestone) -> None:
    if milestone.payment_percent < 0 or milestone.payment_percent > HUNDRED:
        raise ScheduleError(
            f"Payment percent must be between 0 and 100: {milestone.describe()}",
            milestone=milestone,
        )


def _resolve_month(
    milestone: PaymentMilestone,
    handover_month: int,
    curve: ConstructionCurve,
) -> int:
    """Projection month (0 = booking) at which a milestone falls due."""
    if milestone.due_at_handover:
        return handover_month

    if milestone.kind is MilestoneKind.TIME:
        month = round_month(milestone.trigger_value)
        if month < 0:
            raise ScheduleError(
                f"Milestone falls before booking: {milestone.describe()}",
                milestone=milestone,
            )
        if month > handover_month:
            raise ScheduleError(
                f"Pre-handover milestone falls after handover (month {handover_month}): "
                f"{milestone.describe()}",
                milestone=milestone,
            )
        return month

    if milestone.kind is MilestoneKind.CONSTRUCTION:
        if milestone.trigger_value < 0 or milestone.trigger_value > HUNDRED:
            raise ScheduleError(
                f"Construction trigger must be 0-100% complete: {milestone.describe()}",
                milestone=milestone,
            )
        return construction_to_month(milestone.trigger_value, handover_month, curve)

    # Post-handover: months after handover
    offset = round_month(milestone.trigger_value)
    if offset < 0:
        raise ScheduleError(
            f"Post-handover milestone falls before handover: {milestone.describe()}",
            milestone=milestone,
        )
    return handover_month + offset


def build_schedule(
    base_price: Decimal,
    handover_month: int,
    down_payment_percent: Decimal,
    milestones: list[PaymentMilestone],
    post_handover_milestones: list[PaymentMilestone] | None = None,
    on_handover_percent: Decimal | None = None,
    construction_curve: ConstructionCurve = LINEAR,
) -> PaymentSchedule:
    """Resolve a milestone plan into a PaymentSchedule.

    The handover installment is implicit: whatever percentage the down
    payment and explicit milestones leave over. If `on_handover_percent` is
    given it must match that residual.

    Raises:
        ScheduleError: handover before booking, percent outside 0-100,
            trigger before booking / out of order, or an over-allocated plan.
    """
    if handover_month < 0:
        raise ScheduleError(f"Handover precedes booking by {-handover_month} months")
    if base_price <= 0:
        raise ScheduleError(f"Base price must be positive, got {base_price}")
    if down_payment_percent < 0 or down_payment_percent > HUNDRED:
        raise ScheduleError(f"Down payment must be between 0 and 100%, got {down_payment_percent}")

    all_milestones = list(milestones) + list(post_handover_milestones or [])

    # (month, percent, label, is_handover, is_post_handover)
    entries: list[tuple[int, Decimal, str, bool, bool]] = []
    if down_payment_percent > 0:
        entries.append((0, down_payment_percent, DOWN_PAYMENT_LABEL, handover_month == 0, False))

    allocated = down_payment_percent
    for milestone in all_milestones:
        _check_percent(milestone)
        month = _resolve_month(milestone, handover_month, construction_curve)

        allocated += milestone.payment_percent
        if allocated > HUNDRED + PERCENT_TOLERANCE:
            raise ScheduleError(
                f"Payment plan over-allocated: {allocated}% scheduled by "
                f"{milestone.describe()}, leaving a negative handover payment",
                milestone=milestone,
            )
        if milestone.payment_percent == 0:
            continue
        entries.append((
            month,
            milestone.payment_percent,
            milestone.label or milestone.kind.value,
            month == handover_month,
            month > handover_month,
        ))

    residual = HUNDRED - allocated
    if abs(residual) <= PERCENT_TOLERANCE:
        residual = ZERO

    if on_handover_percent is not None and abs(on_handover_percent - residual) > PERCENT_TOLERANCE:
        raise ScheduleError(
            f"Payment plan does not sum to 100%: on-handover {on_handover_percent}% "
            f"but {residual}% remains after the other milestones"
        )

    if residual > 0:
        entries.append((handover_month, residual, HANDOVER_LABEL, True, False))

    events = _merge_events(entries, base_price)

    pre_handover = sum((e.percent for e in events if e.month < handover_month), ZERO)
    on_handover = sum((e.percent for e in events if e.month == handover_month), ZERO)
    post_handover = sum((e.percent for e in events if e.month > handover_month), ZERO)

    logger.debug(
        "Resolved %d payment events: %s%% pre-handover, %s%% on handover, %s%% post-handover",
        len(events), pre_handover, on_handover, post_handover,
    )

    return PaymentSchedule(
        events=events,
        base_price=base_price,
        handover_month=handover_month,
        down_payment_percent=down_payment_percent,
        pre_handover_percent=pre_handover,
        handover_percent=on_handover,
        post_handover_percent=post_handover,
    )


def _merge_events(
    entries: list[tuple[int, Decimal, str, bool, bool]],
    base_price: Decimal,
) -> list[PaymentEvent]:
    """Sum same-month entries into one event each, ascending by month."""
    by_month: dict[int, list[tuple[int, Decimal, str, bool, bool]]] = {}
    for entry in entries:
        by_month.setdefault(entry[0], []).append(entry)

    events: list[PaymentEvent] = []
    for month in sorted(by_month):
        group = by_month[month]
        percent = sum((e[1] for e in group), ZERO)
        events.append(PaymentEvent(
            month=month,
            amount=percent / HUNDRED * base_price,
            percent=percent,
            labels=tuple(e[2] for e in group),
            is_handover=any(e[3] for e in group),
            is_post_handover=any(e[4] for e in group),
        ))
    return events


def resolve_schedule(
    inputs: OIInputs,
    construction_curve: ConstructionCurve = LINEAR,
) -> PaymentSchedule:
    """Resolve the payment plan carried by an OIInputs snapshot."""
    post = inputs.post_handover_milestones if inputs.has_post_handover_plan else []
    on_handover = inputs.on_handover_percent if inputs.has_post_handover_plan else None
    return build_schedule(
        base_price=inputs.base_price,
        handover_month=inputs.handover_month,
        down_payment_percent=inputs.down_payment_percent,
        milestones=inputs.milestones,
        post_handover_milestones=post,
        on_handover_percent=on_handover,
        construction_curve=construction_curve,
    )
