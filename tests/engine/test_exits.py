from dataclasses import replace
from decimal import Decimal

import pytest

from src.engine.errors import OutOfRangeError, WarningCode
from src.engine.exits import (
    analyze_exit,
    analyze_exits,
    annualized_roe,
    auto_exit_months,
    best_exit,
    earliest_threshold_exit,
    is_handover_exit,
    threshold_advance,
)
from src.engine.projection import build_ledger
from src.engine.schedule import resolve_schedule
from src.models.assumptions import AppreciationRates, ExitCosts
from src.models.ratio import Ratio, RatioKind
from src.models.results import ExitScenarioResult


def _run(inputs, mortgage=None, exit_months=None):
    schedule = resolve_schedule(inputs)
    ledger = build_ledger(schedule, inputs, mortgage)
    warnings = []
    results = analyze_exits(ledger, schedule, inputs, exit_months, warnings)
    return ledger, results, warnings


class TestWorkedExample:
    """AED 1M cash purchase, sold one year after handover."""

    def test_one_year_after_handover(self, canonical_inputs):
        ledger, (result,), warnings = _run(canonical_inputs)
        value_36 = 1_000_000 * 1.08 ** (23 / 12) * 1.10 ** (13 / 12)
        rent = (1_000_000 * 1.08 ** (23 / 12) * 1.10 ** (1 / 12)) * 0.07 / 12
        profit = value_36 - 1_000_000 + 12 * rent

        assert result.exit_month == 36
        assert result.total_capital_deployed == Decimal("1000000")
        assert result.unpaid_installments == 0
        assert result.loan_payoff == 0
        assert float(result.exit_price) == pytest.approx(value_36, rel=1e-12)
        assert float(result.cumulative_net_rent) == pytest.approx(12 * rent, rel=1e-12)
        assert float(result.true_profit) == pytest.approx(profit, rel=1e-9)
        assert float(result.true_roe.value) == pytest.approx(profit / 1_000_000, rel=1e-9)
        assert warnings == []

    def test_annualized_over_three_years(self, canonical_inputs):
        _, (result,), _ = _run(canonical_inputs)
        expected = (1 + float(result.true_roe.value)) ** (12 / 36) - 1
        assert float(result.annualized_roe.value) == pytest.approx(expected, rel=1e-9)

    def test_irr_positive(self, canonical_inputs):
        _, (result,), _ = _run(canonical_inputs)
        assert result.irr.is_finite
        assert result.irr.value > 0

    def test_calendar_date(self, canonical_inputs):
        _, (result,), _ = _run(canonical_inputs)
        assert (result.calendar_year, result.calendar_month) == (2028, 1)


class TestPreHandoverExit:
    def test_buyer_assumes_unpaid_installments(self, canonical_inputs):
        ledger, (result,), _ = _run(canonical_inputs, exit_months=[12])
        assert result.plan_capital == Decimal("500000")
        assert result.unpaid_installments == Decimal("500000")
        assert not result.is_handover_exit
        expected = ledger.month(12).property_value - Decimal("1000000")
        assert result.true_profit == expected

    def test_resale_threshold_advance(self, canonical_inputs):
        inputs = replace(canonical_inputs, minimum_exit_threshold_percent=Decimal("60"))
        ledger, (result,), _ = _run(inputs, exit_months=[12])
        assert result.advance_required == Decimal("100000")
        assert result.total_capital_deployed == Decimal("600000")
        assert result.unpaid_installments == Decimal("400000")
        # Advancing a payment moves cash, not profit
        assert result.true_profit == ledger.month(12).property_value - Decimal("1000000")

    def test_exit_costs(self, canonical_inputs):
        inputs = replace(
            canonical_inputs,
            exit_costs=ExitCosts(agent_commission_percent=Decimal("2"), noc_fee=Decimal("5000")),
        )
        _, (plain,), _ = _run(canonical_inputs, exit_months=[12])
        _, (costed,), _ = _run(inputs, exit_months=[12])
        assert costed.agent_commission == costed.exit_price * Decimal("2") / Decimal("100")
        assert costed.noc_fee == Decimal("5000")
        assert float(costed.true_profit) == pytest.approx(float(plain.true_profit - costed.exit_costs), rel=1e-12)

    def test_handover_exit_flag(self, canonical_inputs):
        _, results, _ = _run(canonical_inputs, exit_months=[24])
        assert results[0].is_handover_exit
        assert is_handover_exit(24, 24)
        assert not is_handover_exit(23, 24)


class TestThreshold:
    def test_no_threshold(self, canonical_inputs):
        schedule = resolve_schedule(canonical_inputs)
        assert threshold_advance(schedule, 6, None) == 0

    def test_not_applied_from_handover(self, canonical_inputs):
        schedule = resolve_schedule(canonical_inputs)
        assert threshold_advance(schedule, 24, Decimal("90")) == 0

    def test_advance_before_first_installment(self, canonical_inputs):
        schedule = resolve_schedule(canonical_inputs)
        assert threshold_advance(schedule, 6, Decimal("30")) == Decimal("100000")

    def test_earliest_exit(self, canonical_inputs):
        schedule = resolve_schedule(canonical_inputs)
        assert earliest_threshold_exit(schedule, Decimal("20")) == 0
        assert earliest_threshold_exit(schedule, Decimal("30")) == 12
        assert earliest_threshold_exit(schedule, Decimal("60")) == 24


class TestWithMortgage:
    def test_loan_paid_off_from_proceeds(self, canonical_inputs, canonical_mortgage):
        ledger, (result,), _ = _run(canonical_inputs, canonical_mortgage)
        point = ledger.month(36)
        assert result.loan_payoff == point.loan_balance
        assert result.financing_costs == point.cumulative_financing_costs
        assert result.true_profit == (
            result.exit_price
            - point.loan_balance
            - result.total_capital_deployed
            + result.cumulative_net_rent
            - result.financing_costs
        )

    def test_exit_before_loan_draw(self, canonical_inputs, canonical_mortgage):
        _, (result,), _ = _run(canonical_inputs, canonical_mortgage, exit_months=[12])
        assert result.loan_payoff == 0
        assert result.unpaid_installments == Decimal("500000")

    def test_leverage_raises_roe(self, canonical_inputs, canonical_mortgage):
        _, (cash,), _ = _run(canonical_inputs)
        _, (levered,), _ = _run(canonical_inputs, canonical_mortgage)
        assert levered.total_capital_deployed < cash.total_capital_deployed
        assert levered.true_roe.value > cash.true_roe.value


class TestRoeSign:
    @pytest.mark.parametrize("rate", ["-6", "0", "9"])
    def test_sign_follows_profit(self, canonical_inputs, rate):
        r = Decimal(rate)
        inputs = replace(
            canonical_inputs,
            rental_yield_percent=Decimal("0"),
            appreciation=AppreciationRates(construction=r, growth=r, mature=r),
        )
        _, results, _ = _run(inputs, exit_months=[6, 12, 24, 36, 60])
        for result in results:
            expected = (result.true_profit > 0) - (result.true_profit < 0)
            assert result.true_roe.sign() == expected

    def test_loss_is_negative(self, canonical_inputs):
        r = Decimal("-6")
        inputs = replace(
            canonical_inputs,
            rental_yield_percent=Decimal("0"),
            appreciation=AppreciationRates(construction=r, growth=r, mature=r),
        )
        _, (result,), _ = _run(inputs)
        assert result.true_profit < 0
        assert result.annualized_roe.value < 0


class TestZeroCapital:
    def test_exit_at_booking_with_nothing_paid(self, canonical_inputs):
        inputs = replace(canonical_inputs, down_payment_percent=Decimal("0"))
        _, (result,), warnings = _run(inputs, exit_months=[0])
        assert result.total_capital_deployed == 0
        assert result.true_roe.kind is RatioKind.UNDEFINED
        assert result.annualized_roe.kind is RatioKind.UNDEFINED
        assert [w.code for w in warnings] == [WarningCode.DIVISION_BY_ZERO_GUARD]

    def test_month_zero_annualized_undefined(self, canonical_inputs):
        _, (result,), _ = _run(canonical_inputs, exit_months=[0])
        assert result.true_roe.is_finite
        assert result.annualized_roe.kind is RatioKind.UNDEFINED


class TestAnnualizedRoe:
    def test_finite(self):
        r = annualized_roe(Ratio.finite(Decimal("0.21")), 24)
        assert float(r.value) == pytest.approx(0.10, rel=1e-12)

    def test_zero_months(self):
        assert annualized_roe(Ratio.finite(Decimal("0.5")), 0).kind is RatioKind.UNDEFINED

    def test_infinite(self):
        assert annualized_roe(Ratio.infinite(), 12) == Ratio.infinite()
        assert annualized_roe(Ratio.infinite(negative=True), 12).kind is RatioKind.UNDEFINED

    def test_beyond_total_loss(self):
        assert annualized_roe(Ratio.finite(Decimal("-1.5")), 12).kind is RatioKind.UNDEFINED


class TestCandidates:
    def test_order_preserved(self, canonical_inputs):
        _, results, _ = _run(canonical_inputs, exit_months=[36, 12, 24])
        assert [r.exit_month for r in results] == [36, 12, 24]

    def test_falls_back_to_inputs(self, canonical_inputs):
        _, results, _ = _run(canonical_inputs)
        assert [r.exit_month for r in results] == [36]

    def test_auto_exits_when_none_given(self, canonical_inputs):
        inputs = replace(canonical_inputs, exit_months=[])
        _, results, _ = _run(inputs)
        assert [r.exit_month for r in results] == [12, 14, 17, 19, 22, 24]

    def test_auto_exit_months_deduplicated(self):
        assert auto_exit_months(24) == [12, 14, 17, 19, 22, 24]
        assert auto_exit_months(2) == [1, 2]
        assert auto_exit_months(0) == [0]

    def test_outside_horizon(self, canonical_inputs):
        schedule = resolve_schedule(canonical_inputs)
        ledger = build_ledger(schedule, canonical_inputs, horizon_months=48)
        with pytest.raises(OutOfRangeError):
            analyze_exits(ledger, schedule, canonical_inputs, [12, 60])
        with pytest.raises(OutOfRangeError):
            analyze_exit(ledger, schedule, canonical_inputs, 49)


class TestBestExit:
    @staticmethod
    def _result(month, roe):
        return ExitScenarioResult(
            exit_month=month, calendar_year=2025, calendar_month=1,
            is_handover_exit=False, true_roe=roe,
        )

    def test_highest_roe(self):
        results = [
            self._result(12, Ratio.finite(Decimal("0.1"))),
            self._result(24, Ratio.finite(Decimal("0.3"))),
            self._result(36, Ratio.undefined()),
        ]
        assert best_exit(results).exit_month == 24

    def test_tie_goes_to_earliest(self):
        results = [
            self._result(36, Ratio.finite(Decimal("0.3"))),
            self._result(24, Ratio.finite(Decimal("0.3"))),
        ]
        assert best_exit(results).exit_month == 24

    def test_infinite_wins(self):
        results = [
            self._result(12, Ratio.finite(Decimal("9"))),
            self._result(0, Ratio.infinite()),
        ]
        assert best_exit(results).exit_month == 0

    def test_empty(self):
        assert best_exit([]) is None
