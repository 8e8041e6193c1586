"""Projection routes: the primary API entry point."""

from dataclasses import fields
from decimal import Decimal, ROUND_HALF_UP

from fastapi import APIRouter, HTTPException

from src.api.schemas import (
    AmortizationPointResponse,
    DscrPointResponse,
    ExitScenarioResponse,
    MilestoneIn,
    MonthlyProjectionResponse,
    MortgageSummaryResponse,
    PaymentEventResponse,
    PostHandoverCoverageResponse,
    ProjectionRequest,
    ProjectionResponse,
    RatioResponse,
    ScheduleResponse,
    StressScenarioResponse,
    WarningResponse,
    YearlyProjectionResponse,
)
from src.engine.construction import LINEAR, SCurveConstructionCurve
from src.engine.errors import OutOfRangeError, ScheduleError
from src.engine.exits import earliest_threshold_exit
from src.engine.proforma import ProjectionResult, run_proforma
from src.engine.projection import phase_months
from src.models.assumptions import (
    AppreciationRates,
    ExitCosts,
    MortgageInputs,
    OIInputs,
    RentalMode,
    ServiceCharge,
    ShortTermRentalConfig,
)
from src.models.milestones import MilestoneKind, MonthYear, PaymentMilestone
from src.models.ratio import Ratio

router = APIRouter(prefix="/api/v1", tags=["projection"])

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")


def _money(value: Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def _money_fields(obj) -> dict:
    """Dataclass fields with every Decimal rounded to cents."""
    return {
        f.name: _money(getattr(obj, f.name)) if isinstance(getattr(obj, f.name), Decimal) else getattr(obj, f.name)
        for f in fields(obj)
    }


def _ratio(r: Ratio) -> RatioResponse:
    value = r.value.quantize(FOUR_PLACES, ROUND_HALF_UP) if r.is_finite else None
    return RatioResponse(kind=r.kind.value, value=value, negative=r.negative, display=str(r))


def _milestone(m: MilestoneIn) -> PaymentMilestone:
    return PaymentMilestone(
        kind=MilestoneKind(m.kind),
        trigger_value=m.trigger_value,
        payment_percent=m.payment_percent,
        label=m.label,
        id=m.id,
        is_handover=m.is_handover,
    )


def build_inputs(req: ProjectionRequest) -> OIInputs:
    """Convert the request body into engine inputs."""
    short_term = None
    if req.short_term_rental is not None:
        st = req.short_term_rental
        kwargs = st.model_dump(exclude={"seasonal_factors"})
        if st.seasonal_factors is not None:
            kwargs["seasonal_factors"] = tuple(st.seasonal_factors)
        short_term = ShortTermRentalConfig(**kwargs)

    return OIInputs(
        base_price=req.base_price,
        booking_date=MonthYear(year=req.booking.year, month=req.booking.month),
        handover_date=MonthYear(year=req.handover.year, month=req.handover.month),
        currency=req.currency,
        unit_size_sqft=req.unit_size_sqft,
        down_payment_percent=req.down_payment_percent,
        milestones=[_milestone(m) for m in req.milestones],
        has_post_handover_plan=req.has_post_handover_plan,
        on_handover_percent=req.on_handover_percent,
        post_handover_milestones=[_milestone(m) for m in req.post_handover_milestones],
        rental_mode=RentalMode(req.rental_mode),
        rental_yield_percent=req.rental_yield_percent,
        rent_growth_rate=req.rent_growth_rate,
        service_charge=ServiceCharge(**req.service_charge.model_dump()),
        short_term_rental=short_term,
        appreciation=AppreciationRates(**req.appreciation.model_dump()),
        dld_fee_percent=req.dld_fee_percent,
        oqood_fee=req.oqood_fee,
        exit_costs=ExitCosts(**req.exit_costs.model_dump()),
        minimum_exit_threshold_percent=req.minimum_exit_threshold_percent,
        exit_months=list(req.exit_months),
    )


def build_mortgage(req: ProjectionRequest) -> MortgageInputs | None:
    if req.mortgage is None:
        return None
    return MortgageInputs(**req.mortgage.model_dump())


def _result_to_response(result: ProjectionResult, include_monthly: bool) -> ProjectionResponse:
    """Convert engine ProjectionResult to API response. Money rounded to cents."""
    inputs = result.inputs
    schedule = result.schedule
    ledger = result.ledger

    events = []
    for e in schedule.events:
        calendar = inputs.booking_date.add_months(e.month)
        events.append(PaymentEventResponse(
            month=e.month,
            calendar_year=calendar.year,
            calendar_month=calendar.month,
            amount=_money(e.amount),
            percent=e.percent,
            labels=list(e.labels),
            is_handover=e.is_handover,
            is_post_handover=e.is_post_handover,
        ))

    exits = [
        ExitScenarioResponse(
            exit_month=x.exit_month,
            calendar_year=x.calendar_year,
            calendar_month=x.calendar_month,
            is_handover_exit=x.is_handover_exit,
            exit_price=_money(x.exit_price),
            appreciation=_money(x.appreciation),
            appreciation_percent=_money(x.appreciation_percent),
            plan_capital=_money(x.plan_capital),
            advance_required=_money(x.advance_required),
            total_capital_deployed=_money(x.total_capital_deployed),
            cumulative_net_rent=_money(x.cumulative_net_rent),
            financing_costs=_money(x.financing_costs),
            loan_payoff=_money(x.loan_payoff),
            unpaid_installments=_money(x.unpaid_installments),
            exit_costs=_money(x.exit_costs),
            true_profit=_money(x.true_profit),
            true_roe=_ratio(x.true_roe),
            annualized_roe=_ratio(x.annualized_roe),
            irr=_ratio(x.irr),
        )
        for x in result.exits
    ]

    mortgage = None
    s = result.mortgage_summary
    if s is not None:
        mortgage = MortgageSummaryResponse(
            equity_required_percent=s.equity_required_percent,
            pre_handover_percent=s.pre_handover_percent,
            gap_percent=s.gap_percent,
            gap_amount=_money(s.gap_amount),
            has_gap=s.has_gap,
            loan_amount=_money(s.loan_amount),
            monthly_payment=_money(s.monthly_payment),
            total_interest=_money(s.total_interest),
            total_upfront_fees=_money(s.total_upfront_fees),
            total_annual_insurance=_money(s.total_annual_insurance),
            total_cost_with_mortgage=_money(s.total_cost_with_mortgage),
            total_interest_and_fees=_money(s.total_interest_and_fees),
            principal_paid_year_5=_money(s.principal_paid_year_5),
            principal_paid_year_10=_money(s.principal_paid_year_10),
            amortization=[AmortizationPointResponse(**_money_fields(p)) for p in s.amortization or []],
            stress_scenarios=[StressScenarioResponse(**_money_fields(p)) for p in s.stress_scenarios or []],
        )

    resale_month = None
    if inputs.minimum_exit_threshold_percent is not None:
        resale_month = earliest_threshold_exit(schedule, inputs.minimum_exit_threshold_percent)

    coverage = None
    if result.post_handover_coverage is not None:
        coverage = PostHandoverCoverageResponse(**_money_fields(result.post_handover_coverage))

    return ProjectionResponse(
        currency=inputs.currency,
        handover_month=ledger.handover_month,
        horizon_months=ledger.horizon_months,
        schedule=ScheduleResponse(
            handover_month=schedule.handover_month,
            total_amount=_money(schedule.total_amount),
            down_payment_percent=schedule.down_payment_percent,
            pre_handover_percent=schedule.pre_handover_percent,
            handover_percent=schedule.handover_percent,
            post_handover_percent=schedule.post_handover_percent,
            earliest_resale_month=resale_month,
            events=events,
        ),
        monthly=[MonthlyProjectionResponse(**_money_fields(p)) for p in ledger.months] if include_monthly else [],
        yearly=[YearlyProjectionResponse(**_money_fields(y)) for y in ledger.years],
        phase_months=phase_months(ledger),
        exits=exits,
        best_exit_month=result.best_exit.exit_month if result.best_exit else None,
        dscr=[
            DscrPointResponse(month=d.month, dscr=_ratio(d.dscr), band=d.band)
            for d in result.dscr
        ] if ledger.has_mortgage else [],
        post_handover_coverage=coverage,
        mortgage_summary=mortgage,
        warnings=[
            WarningResponse(code=w.code.value, message=w.message, month=w.month)
            for w in result.warnings
        ],
    )


def run_request(req: ProjectionRequest) -> ProjectionResult:
    """Build inputs and run the projection, mapping engine errors to HTTP errors."""
    try:
        inputs = build_inputs(req)
        curve = SCurveConstructionCurve() if req.construction_curve == "s-curve" else LINEAR
        return run_proforma(
            inputs,
            mortgage=build_mortgage(req),
            horizon_months=req.horizon_months,
            construction_curve=curve,
        )
    except ScheduleError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "message": str(e),
                "milestone": e.milestone.describe() if e.milestone else None,
            },
        )
    except OutOfRangeError as e:
        raise HTTPException(
            status_code=400,
            detail={"message": str(e), "month": e.month, "horizon": e.horizon},
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/projection", response_model=ProjectionResponse)
async def projection(req: ProjectionRequest):
    """Primary endpoint: quote inputs -> schedule, ledger, exits and coverage.

    Orchestrates: resolve payment plan -> monthly projection -> exit analysis.
    """
    result = run_request(req)
    return _result_to_response(result, include_monthly=req.include_monthly)
