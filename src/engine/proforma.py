"""Projection orchestrator: resolver -> monthly engine -> exit and coverage analysis.

Pure computation. No I/O. OIInputs (+ MortgageInputs) in, ProjectionResult out.
Every call recomputes from scratch; identical inputs give identical results.
"""

import logging
from dataclasses import dataclass, field

from src.engine.construction import LINEAR, ConstructionCurve
from src.engine.coverage import DscrThresholds, dscr_series, post_handover_coverage
from src.engine.debt import MortgageSummary, mortgage_summary
from src.engine.errors import NumericWarning
from src.engine.exits import analyze_exits, auto_exit_months, best_exit
from src.engine.projection import ProjectionLedger, build_ledger, required_horizon
from src.engine.rental import RentalIncomeModel
from src.engine.schedule import resolve_schedule
from src.models.assumptions import MortgageInputs, OIInputs
from src.models.milestones import PaymentSchedule
from src.models.results import DscrPoint, ExitScenarioResult, PostHandoverCoverage

logger = logging.getLogger(__name__)


@dataclass
class ProjectionResult:
    inputs: OIInputs
    schedule: PaymentSchedule
    ledger: ProjectionLedger
    exits: list[ExitScenarioResult]
    best_exit: ExitScenarioResult | None
    dscr: list[DscrPoint]
    post_handover_coverage: PostHandoverCoverage | None = None
    mortgage: MortgageInputs | None = None
    mortgage_summary: MortgageSummary | None = None
    warnings: list[NumericWarning] = field(default_factory=list)


def run_proforma(
    inputs: OIInputs,
    mortgage: MortgageInputs | None = None,
    exit_months: list[int] | None = None,
    horizon_months: int | None = None,
    income_model: RentalIncomeModel | None = None,
    construction_curve: ConstructionCurve = LINEAR,
    dscr_thresholds: DscrThresholds | None = None,
) -> ProjectionResult:
    """Run the complete projection for one quote.

    Exit candidates come from `exit_months`, then inputs.exit_months, then
    the automatic construction-timeline candidates.

    Raises:
        ScheduleError: the payment plan is malformed.
        OutOfRangeError: an exit or the horizon exceeds the permitted range.
    """
    schedule = resolve_schedule(inputs, construction_curve)

    if exit_months is None:
        exit_months = inputs.exit_months or auto_exit_months(schedule.handover_month)

    if horizon_months is None:
        origination = None
        if mortgage is not None:
            origination = mortgage.origination_month
            if origination is None:
                origination = schedule.handover_month
        horizon_months = required_horizon(schedule, exit_months, origination)

    ledger = build_ledger(
        schedule, inputs, mortgage, horizon_months,
        income_model=income_model, construction_curve=construction_curve,
    )

    warnings = list(ledger.warnings)
    exits = analyze_exits(ledger, schedule, inputs, exit_months, warnings)

    summary = None
    if mortgage is not None:
        first_rent_month = min(schedule.handover_month + 1, ledger.horizon_months)
        summary = mortgage_summary(
            mortgage,
            inputs.base_price,
            schedule.pre_handover_percent,
            monthly_net_rent=ledger.months[first_rent_month].net_rent,
            principal=ledger.loan_amount,
        )

    result = ProjectionResult(
        inputs=inputs,
        schedule=schedule,
        ledger=ledger,
        exits=exits,
        best_exit=best_exit(exits),
        dscr=dscr_series(ledger, dscr_thresholds),
        post_handover_coverage=post_handover_coverage(ledger, schedule),
        mortgage=mortgage,
        mortgage_summary=summary,
        warnings=warnings,
    )

    logger.info(
        "Projection complete: %d months, %d exits, best exit month %s",
        ledger.horizon_months,
        len(exits),
        result.best_exit.exit_month if result.best_exit else None,
    )
    return result

