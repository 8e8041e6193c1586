"""Tests for the monthly projection engine, using the canonical AED 1M quote."""

from dataclasses import replace
from decimal import Decimal

import pytest

from src.engine.errors import OutOfRangeError, WarningCode
from src.engine.projection import build_ledger, phase_months, required_horizon
from src.engine.schedule import resolve_schedule
from src.models.assumptions import (
    AppreciationRates,
    MortgageInputs,
    RentalMode,
    ServiceCharge,
    ShortTermRentalConfig,
)


def _ledger(inputs, mortgage=None, **kw):
    return build_ledger(resolve_schedule(inputs), inputs, mortgage, **kw)


def _value_at(month: int) -> float:
    """Canonical value path: 8% until month 23, 10% from handover."""
    construction = min(month, 23)
    growth = max(0, month - 23)
    return 1_000_000 * 1.08 ** (construction / 12) * 1.10 ** (growth / 12)


class TestHorizon:
    def test_default_ten_years(self, canonical_inputs):
        ledger = _ledger(canonical_inputs)
        assert ledger.horizon_months == 120
        assert len(ledger.months) == 121
        assert [p.month for p in ledger.months] == list(range(121))

    def test_extends_to_last_exit(self, canonical_inputs):
        schedule = resolve_schedule(canonical_inputs)
        assert required_horizon(schedule, [36, 150]) == 150

    def test_cap(self, canonical_inputs):
        schedule = resolve_schedule(canonical_inputs)
        with pytest.raises(OutOfRangeError):
            required_horizon(schedule, [361])

    def test_explicit_horizon_over_cap(self, canonical_inputs):
        with pytest.raises(OutOfRangeError):
            _ledger(canonical_inputs, horizon_months=400)

    def test_lookup_outside_horizon(self, canonical_inputs):
        ledger = _ledger(canonical_inputs, horizon_months=48)
        with pytest.raises(OutOfRangeError) as exc:
            ledger.month(49)
        assert exc.value.horizon == 48
        with pytest.raises(OutOfRangeError):
            ledger.month(-1)


class TestValue:
    def test_seeded_at_base_price(self, canonical_inputs):
        ledger = _ledger(canonical_inputs)
        assert ledger.month(0).property_value == Decimal("1000000")

    @pytest.mark.parametrize("month", [1, 12, 23, 24, 36])
    def test_phase_compounding(self, canonical_inputs, month):
        ledger = _ledger(canonical_inputs)
        assert float(ledger.month(month).property_value) == pytest.approx(_value_at(month), rel=1e-12)

    def test_mature_phase_after_growth_period(self, canonical_inputs):
        ledger = _ledger(canonical_inputs)
        ratio = ledger.month(61).property_value / ledger.month(60).property_value
        assert float(ratio) == pytest.approx(1.05 ** (1 / 12), rel=1e-12)
        assert ledger.month(59).phase == "growth"
        assert ledger.month(60).phase == "mature"

    def test_flat_rate_matches_closed_form(self, canonical_inputs):
        r = Decimal("6.8")
        inputs = replace(canonical_inputs, appreciation=AppreciationRates(construction=r, growth=r, mature=r))
        ledger = _ledger(inputs)
        for n in (7, 24, 100):
            expected = 1_000_000 * 1.068 ** (n / 12)
            assert float(ledger.month(n).property_value) == pytest.approx(expected, rel=1e-12)

    def test_phase_month_counts(self, canonical_inputs):
        counts = phase_months(_ledger(canonical_inputs))
        assert counts == {"construction": 24, "growth": 36, "mature": 61}


class TestCapital:
    def test_payment_plan_cash_out(self, canonical_inputs):
        ledger = _ledger(canonical_inputs)
        assert ledger.month(0).out_of_pocket == Decimal("200000")
        assert ledger.month(12).payment_due == Decimal("300000")
        assert ledger.month(24).capital_deployed == Decimal("1000000")
        assert ledger.month(36).capital_deployed == Decimal("1000000")

    def test_monotonic(self, canonical_inputs, canonical_mortgage):
        for mortgage in (None, canonical_mortgage):
            ledger = _ledger(canonical_inputs, mortgage)
            capital = [p.capital_deployed for p in ledger.months]
            assert all(b >= a for a, b in zip(capital, capital[1:]))

    def test_monotonic_post_handover_plan(self, post_handover_inputs):
        ledger = _ledger(post_handover_inputs)
        capital = [p.capital_deployed for p in ledger.months]
        assert all(b >= a for a, b in zip(capital, capital[1:]))
        assert capital[-1] == Decimal("2000000")

    def test_entry_costs_at_booking(self, canonical_inputs):
        inputs = replace(canonical_inputs, dld_fee_percent=Decimal("4"), oqood_fee=Decimal("1000"))
        ledger = _ledger(inputs)
        assert ledger.month(0).out_of_pocket == Decimal("241000")


class TestRent:
    def test_no_rent_through_handover(self, canonical_inputs):
        ledger = _ledger(canonical_inputs)
        assert all(p.gross_rent == 0 for p in ledger.months[:25])

    def test_yield_on_handover_value(self, canonical_inputs):
        ledger = _ledger(canonical_inputs)
        expected = ledger.month(24).property_value * Decimal("7") / Decimal("100") / 12
        assert ledger.month(25).gross_rent == expected
        assert ledger.month(36).gross_rent == expected

    def test_twelve_months_collected_by_month_36(self, canonical_inputs):
        ledger = _ledger(canonical_inputs)
        monthly = _value_at(24) * 0.07 / 12
        assert float(ledger.month(36).cumulative_net_rent) == pytest.approx(12 * monthly, rel=1e-12)

    def test_rent_growth_each_tenancy_year(self, canonical_inputs):
        inputs = replace(canonical_inputs, rent_growth_rate=Decimal("5"))
        ledger = _ledger(inputs)
        assert float(ledger.month(37).gross_rent / ledger.month(36).gross_rent) == pytest.approx(1.05, rel=1e-12)
        assert ledger.month(48).gross_rent == ledger.month(37).gross_rent

    def test_service_charges_deducted(self, canonical_inputs):
        inputs = replace(
            canonical_inputs,
            unit_size_sqft=Decimal("1000"),
            service_charge=ServiceCharge(per_sqft=Decimal("12")),
        )
        ledger = _ledger(inputs)
        p = ledger.month(30)
        assert p.service_charges == Decimal("1000")
        assert p.net_rent == p.gross_rent - Decimal("1000")
        assert ledger.month(24).service_charges == 0

    def test_net_rent_floored_with_warning(self, canonical_inputs):
        inputs = replace(
            canonical_inputs,
            unit_size_sqft=Decimal("1000"),
            service_charge=ServiceCharge(per_sqft=Decimal("200")),
        )
        ledger = _ledger(inputs)
        assert all(p.net_rent == 0 for p in ledger.months)
        codes = [w.code for w in ledger.warnings]
        assert codes == [WarningCode.NEGATIVE_NET_RENT]
        assert ledger.warnings[0].month == 25

    def test_short_term_mode(self, canonical_inputs):
        inputs = replace(
            canonical_inputs,
            rental_mode=RentalMode.SHORT_TERM,
            short_term_rental=ShortTermRentalConfig(),
        )
        ledger = _ledger(inputs)
        p = ledger.month(30)
        assert p.net_rent > 0
        assert p.airbnb_net_income == p.net_rent
        assert ledger.month(10).airbnb_net_income == 0

    def test_airbnb_comparison_alongside_long_term(self, canonical_inputs):
        inputs = replace(canonical_inputs, short_term_rental=ShortTermRentalConfig())
        plain = _ledger(canonical_inputs)
        compared = _ledger(inputs)
        assert compared.month(30).net_rent == plain.month(30).net_rent
        assert compared.month(30).airbnb_net_income > 0
        assert plain.month(30).airbnb_net_income is None


class TestMortgage:
    def test_loan_settles_handover_payment(self, canonical_inputs, canonical_mortgage):
        ledger = _ledger(canonical_inputs, canonical_mortgage)
        handover = ledger.month(24)
        assert ledger.loan_amount == Decimal("500000")
        assert handover.financed_amount == Decimal("500000")
        assert handover.loan_balance == Decimal("500000")
        # 1% processing + 3,000 valuation + 0.25% registration
        assert handover.out_of_pocket == Decimal("9250")
        assert ledger.warnings == []

    def test_first_payment_month_after_origination(self, canonical_inputs, canonical_mortgage):
        ledger = _ledger(canonical_inputs, canonical_mortgage)
        assert ledger.month(24).mortgage_payment == 0
        p = ledger.month(25)
        assert p.mortgage_payment == ledger.monthly_mortgage_payment
        assert p.interest_paid == Decimal("500000") * (Decimal("4.5") / Decimal("100") / 12)
        assert p.loan_balance == Decimal("500000") - p.principal_paid
        assert p.out_of_pocket == p.principal_paid

    def test_cash_flow_and_equity(self, canonical_inputs, canonical_mortgage):
        ledger = _ledger(canonical_inputs, canonical_mortgage)
        p = ledger.month(30)
        assert p.net_cash_flow == p.net_rent - p.mortgage_payment - p.insurance_cost
        assert p.equity == p.property_value - p.loan_balance
        assert p.cumulative_financing_costs > 0

    def test_loan_capped_at_amount_still_owed(self, canonical_inputs):
        ledger = _ledger(canonical_inputs, MortgageInputs(financing_percent=Decimal("80")))
        assert ledger.loan_amount == Decimal("500000")
        assert [w.code for w in ledger.warnings] == [WarningCode.LOAN_CAPPED]

    def test_early_origination_finances_later_installments(self, canonical_inputs):
        mortgage = MortgageInputs(financing_percent=Decimal("50"), origination_month=12)
        ledger = _ledger(canonical_inputs, mortgage)
        assert ledger.month(12).financed_amount == Decimal("300000")
        assert ledger.month(24).financed_amount == Decimal("200000")
        assert ledger.month(24).out_of_pocket == Decimal("300000") + ledger.month(24).principal_paid
        assert ledger.month(13).mortgage_payment > 0

    def test_loan_matures_inside_horizon(self, canonical_inputs):
        mortgage = MortgageInputs(financing_percent=Decimal("50"), loan_term_years=5)
        ledger = _ledger(canonical_inputs, mortgage)
        assert ledger.loan_end_month == 84
        assert ledger.month(84).loan_balance == 0
        assert ledger.month(90).mortgage_payment == 0
        assert ledger.month(90).insurance_cost == 0


class TestYearlyRollup:
    def test_year_boundaries(self, canonical_inputs):
        years = _ledger(canonical_inputs).years
        assert len(years) == 10
        assert (years[0].start_month, years[0].end_month, years[0].months) == (1, 12, 12)
        assert (years[1].start_month, years[1].end_month) == (13, 24)
        assert years[-1].end_month == 120
        assert all(y.months == 12 for y in years)

    def test_booking_folded_into_first_year(self, canonical_inputs):
        ledger = _ledger(canonical_inputs)
        first = ledger.years[0]
        # Down payment at month 0 plus the 50% construction call at month 12
        assert first.payments_made == Decimal("500000")
        expected_avg = sum(p.property_value for p in ledger.months[1:13]) / 12
        assert float(first.average_property_value) == pytest.approx(float(expected_avg), rel=1e-12)

    def test_cash_flow_sums_match_ledger(self, canonical_inputs):
        ledger = _ledger(canonical_inputs)
        total = sum(p.net_cash_flow for p in ledger.months)
        assert float(sum(y.net_cash_flow for y in ledger.years)) == pytest.approx(float(total), rel=1e-12)

    def test_phase_flags(self, canonical_inputs):
        years = _ledger(canonical_inputs).years
        assert years[0].is_construction
        assert years[1].is_handover and not years[1].is_construction
        assert not years[2].is_construction and not years[2].is_handover

    def test_sums_match_ledger(self, canonical_inputs, canonical_mortgage):
        ledger = _ledger(canonical_inputs, canonical_mortgage)
        total_rent = sum(p.net_rent for p in ledger.months)
        assert float(sum(y.net_rent for y in ledger.years)) == pytest.approx(float(total_rent), rel=1e-12)
        assert ledger.years[2].property_value == ledger.month(36).property_value
        assert ledger.years[2].equity == ledger.month(36).equity

    def test_partial_final_year(self, canonical_inputs):
        ledger = _ledger(canonical_inputs, horizon_months=30)
        assert ledger.years[-1].start_month == 25
        assert ledger.years[-1].months == 6


class TestIdempotence:
    def test_same_inputs_same_ledger(self, canonical_inputs, canonical_mortgage):
        assert _ledger(canonical_inputs, canonical_mortgage) == _ledger(canonical_inputs, canonical_mortgage)
