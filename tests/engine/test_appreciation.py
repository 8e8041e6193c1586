"""Tests for phase-based appreciation."""

from decimal import Decimal

import pytest

from src.engine.appreciation import (
    Phase,
    build_phase_timeline,
    monthly_rate,
)
from src.models.assumptions import AppreciationRates


class TestMonthlyRate:
    def test_compounds_back_to_annual(self):
        r = monthly_rate(Decimal("8"))
        assert float((1 + r) ** 12) == pytest.approx(1.08, rel=1e-12)

    def test_zero(self):
        assert monthly_rate(Decimal("0")) == Decimal("0")

    def test_negative_rate(self):
        assert monthly_rate(Decimal("-10")) < 0

    def test_total_loss_rejected(self):
        with pytest.raises(ValueError):
            monthly_rate(Decimal("-100"))


class TestPhaseTimeline:
    def test_boundaries(self):
        rates = AppreciationRates(growth_period_years=3)
        timeline = build_phase_timeline(24, rates)
        assert timeline.phase_for(0) is Phase.CONSTRUCTION
        assert timeline.phase_for(23) is Phase.CONSTRUCTION
        assert timeline.phase_for(24) is Phase.GROWTH
        assert timeline.phase_for(59) is Phase.GROWTH
        assert timeline.phase_for(60) is Phase.MATURE
        assert timeline.phase_for(360) is Phase.MATURE

    def test_ready_property_skips_construction(self):
        timeline = build_phase_timeline(0, AppreciationRates())
        assert timeline.phase_for(0) is Phase.GROWTH
        assert [r.phase for r in timeline.regimes] == [Phase.GROWTH, Phase.MATURE]

    def test_no_growth_period(self):
        timeline = build_phase_timeline(12, AppreciationRates(growth_period_years=0))
        assert timeline.phase_for(12) is Phase.MATURE

    def test_rate_lookup(self):
        rates = AppreciationRates(construction=Decimal("8"), growth=Decimal("10"), mature=Decimal("5"))
        timeline = build_phase_timeline(24, rates)
        assert timeline.rate_for(5) == monthly_rate(Decimal("8"))
        assert timeline.rate_for(30) == monthly_rate(Decimal("10"))
