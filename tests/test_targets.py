"""Tests for targets, position sizing and trade setup grading."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from stockphase.analysis import calculate_position_size, calculate_targets, evaluate_trade_setup
from stockphase.models import Phase


class TestCalculateTargets:
    """Per-phase target and cut-loss formulas."""

    def test_markup_trails_ma20(self):
        result = calculate_targets(1000.0, Phase.MARKUP, 950.0, 1050.0, ma20=980.0)
        assert result.target_price == pytest.approx(1180.0)
        assert result.cut_loss_price == pytest.approx(960.4)
        assert result.potential_gain_percent == pytest.approx(18.0)
        assert result.potential_loss_percent == pytest.approx(3.96)
        assert result.risk_reward_ratio == pytest.approx(4.55)

    def test_markup_without_ma20_uses_8_percent(self):
        result = calculate_targets(100.0, Phase.MARKUP, 95.0, 105.0)
        assert result.cut_loss_price == pytest.approx(92.0)

    def test_accumulation_measured_move(self):
        result = calculate_targets(100.0, Phase.ACCUMULATION, 90.0, 110.0)
        assert result.target_price == pytest.approx(120.0)
        assert result.cut_loss_price == pytest.approx(87.3)
        assert result.risk_reward_ratio == pytest.approx(1.57)

    def test_distribution_projects_below_support(self):
        result = calculate_targets(100.0, Phase.DISTRIBUTION, 90.0, 110.0)
        assert result.target_price == pytest.approx(80.0)
        assert result.cut_loss_price == pytest.approx(113.3)
        assert result.potential_gain_percent == pytest.approx(-20.0)
        assert result.risk_reward_ratio == pytest.approx(1.5)

    def test_markdown_caps_stop_at_ma20(self):
        result = calculate_targets(100.0, Phase.MARKDOWN, 90.0, 110.0, ma20=103.0)
        assert result.target_price == pytest.approx(82.0)
        assert result.cut_loss_price == pytest.approx(105.06)

    def test_phase_given_as_string(self):
        assert calculate_targets(100.0, "markup", 95.0, 105.0) == calculate_targets(
            100.0, Phase.MARKUP, 95.0, 105.0
        )

    def test_unknown_phase_uses_default(self):
        result = calculate_targets(100.0, "sideways", 95.0, 105.0)
        assert result.target_price == pytest.approx(110.0)
        assert result.cut_loss_price == pytest.approx(95.0)
        assert result.risk_reward_ratio == pytest.approx(2.0)

    def test_zero_price_has_zero_percentages(self):
        result = calculate_targets(0.0, Phase.ACCUMULATION, 0.0, 0.0)
        assert result.potential_gain_percent == 0
        assert result.potential_loss_percent == 0
        assert result.risk_reward_ratio == 0

    @given(
        price=st.floats(min_value=1.0, max_value=10_000.0),
        below=st.floats(min_value=0.01, max_value=0.5),
        above=st.floats(min_value=0.01, max_value=0.5),
    )
    @settings(max_examples=100)
    def test_accumulation_brackets_price(self, price: float, below: float, above: float):
        """
        *For any* price between support and resistance, an accumulation target
        sits above the price and the cut-loss below it.
        """
        support = price * (1 - below)
        resistance = price * (1 + above)
        result = calculate_targets(price, Phase.ACCUMULATION, support, resistance)
        assert result.target_price >= round(price, 2)
        assert result.cut_loss_price <= round(price, 2)

    @given(
        price=st.floats(min_value=1.0, max_value=10_000.0),
        ma_ratio=st.floats(min_value=0.5, max_value=1.0),
    )
    @settings(max_examples=100)
    def test_markup_stop_below_price(self, price: float, ma_ratio: float):
        result = calculate_targets(price, Phase.MARKUP, price * 0.9, price * 1.1, ma20=price * ma_ratio)
        assert result.cut_loss_price < price < result.target_price


class TestPositionSize:
    """Risk-based share count."""

    def test_one_percent_risk(self):
        result = calculate_position_size(100_000.0, 1.0, 50.0, 48.0)
        assert result.shares == 500
        assert result.position_value == pytest.approx(25_000.0)
        assert result.risk_amount == pytest.approx(1_000.0)

    def test_shares_are_floored(self):
        assert calculate_position_size(10_000.0, 1.0, 10.0, 7.0).shares == 33

    def test_stop_above_entry_for_shorts(self):
        assert calculate_position_size(10_000.0, 2.0, 50.0, 52.0).shares == 100

    def test_entry_equals_stop(self):
        result = calculate_position_size(10_000.0, 1.0, 50.0, 50.0)
        assert result.shares == 0
        assert result.position_value == 0


class TestTradeSetup:
    """Letter grades and favorability."""

    @pytest.mark.parametrize(
        "phase, strength, rr, grade, favorable",
        [
            (Phase.ACCUMULATION, 70, 3.0, "A", True),
            (Phase.ACCUMULATION, 50, 1.5, "B", True),
            (Phase.MARKUP, 60, 2.0, "B", True),
            (Phase.MARKUP, 55, 1.0, "F", False),
            (Phase.MARKDOWN, 70, 3.0, "B", False),
            (Phase.DISTRIBUTION, 20, 1.5, "F", False),
            (Phase.DISTRIBUTION, 50, 2.0, "C", False),
        ],
    )
    def test_grades(self, phase: Phase, strength: float, rr: float, grade: str, favorable: bool):
        setup = evaluate_trade_setup(phase, strength, rr)
        assert setup.grade == grade
        assert setup.favorable is favorable

    def test_reason_lists_every_component(self):
        setup = evaluate_trade_setup("accumulation", 70, 3.0)
        assert setup.reason == (
            "Strong phase confirmation. Excellent R/R ratio (3:1+). Accumulation is ideal for entry"
        )

    def test_short_phases_are_never_favorable(self):
        assert not evaluate_trade_setup(Phase.DISTRIBUTION, 100, 10.0).favorable

    def test_unknown_phase_gets_no_preference(self):
        setup = evaluate_trade_setup("sideways", 70, 3.0)
        assert setup.grade == "B"
        assert setup.favorable is False
        assert setup.reason == "Strong phase confirmation. Excellent R/R ratio (3:1+)"
