"""Tests for the Wyckoff phase classifier.

Rule-level behaviour is checked on hand-built PhaseSignals; end-to-end
behaviour on synthetic bar series.
"""

import pytest
from hypothesis import given, settings

from stockphase.analysis import PHASE_RULES, detect_phase
from stockphase.analysis.phase import PhaseSignals, match_rule
from stockphase.models import IndicatorSet, Phase, SubPhase
from strategies import flat_bars, make_bars, price_bars


def signals(**overrides) -> PhaseSignals:
    """Neutral signals: nothing consolidating, trending or extreme."""
    values = dict(
        price=100.0,
        indicators=IndicatorSet(ma20=100.0, ma50=100.0),
        support=95.0,
        resistance=105.0,
        trend="neutral",
        is_consolidating=False,
        higher_lows=False,
        lower_highs=False,
        volume_pattern="stable",
        near_support=False,
        near_resistance=False,
        rsi_oversold=False,
        rsi_overbought=False,
        mfi_oversold=False,
        mfi_overbought=False,
        macd_bullish=False,
        macd_bearish=False,
    )
    values.update(overrides)
    return PhaseSignals(**values)


def classify(s: PhaseSignals):
    return match_rule(s).build(s)


class TestRuleOrder:
    """
    **Property: Ordered rule evaluation, first match wins**
    """

    def test_rule_table_order(self):
        assert [rule.name for rule in PHASE_RULES] == [
            "accumulation", "markup", "distribution", "markdown", "transition",
        ]

    def test_support_and_resistance_both_near_prefers_accumulation(self):
        s = signals(is_consolidating=True, near_support=True, near_resistance=True)
        assert match_rule(s).name == "accumulation"

    def test_oversold_and_overbought_prefers_accumulation(self):
        s = signals(is_consolidating=True, rsi_oversold=True, mfi_overbought=True)
        assert match_rule(s).name == "accumulation"

    def test_consolidating_trend_is_not_markup(self):
        s = signals(
            is_consolidating=True,
            trend="bullish",
            indicators=IndicatorSet(ma20=105.0, ma50=100.0),
        )
        assert match_rule(s).name == "transition"

    def test_consolidating_downtrend_near_support_is_accumulation(self):
        s = signals(
            is_consolidating=True,
            trend="bearish",
            near_support=True,
            indicators=IndicatorSet(ma20=95.0, ma50=100.0),
        )
        assert match_rule(s).name == "accumulation"

    def test_nothing_matches_is_transition(self):
        outcome = classify(signals())
        assert outcome.phase is Phase.ACCUMULATION
        assert outcome.sub_phase is SubPhase.A
        assert outcome.strength == 25
        assert outcome.reasons == ["Market in transition, monitoring for clearer signals."]


class TestAccumulationRule:
    """Sub-phase and strength scoring inside a trading range near support."""

    def test_higher_lows_with_every_bonus(self):
        outcome = classify(signals(
            is_consolidating=True,
            near_support=True,
            higher_lows=True,
            rsi_oversold=True,
            mfi_oversold=True,
            macd_bullish=True,
        ))
        assert outcome.phase is Phase.ACCUMULATION
        assert outcome.sub_phase is SubPhase.C
        assert outcome.strength == 70
        assert " ".join(outcome.reasons) == (
            "Price consolidating near support levels. Higher lows forming. "
            "RSI oversold. MFI shows accumulation. MACD turning bullish."
        )

    def test_drying_volume_is_phase_b(self):
        outcome = classify(signals(is_consolidating=True, near_support=True, volume_pattern="decreasing"))
        assert outcome.sub_phase is SubPhase.B
        assert outcome.strength == 20

    def test_plain_range_is_phase_a(self):
        outcome = classify(signals(is_consolidating=True, mfi_oversold=True))
        assert outcome.sub_phase is SubPhase.A
        assert outcome.strength == 25
        assert outcome.reasons[1] == "Initial accumulation phase."


class TestMarkupRule:
    """Trend-following markup scoring."""

    def test_confirmed_markup_with_every_bonus(self):
        outcome = classify(signals(
            trend="bullish",
            indicators=IndicatorSet(ma20=105.0, ma50=100.0),
            volume_pattern="increasing",
            macd_bullish=True,
        ))
        assert outcome.phase is Phase.MARKUP
        assert outcome.sub_phase is SubPhase.D
        assert outcome.strength == 70
        assert outcome.reasons == [
            "Price in uptrend above moving averages.",
            "MA20 above MA50.",
            "Volume increasing on up moves.",
            "MACD bullish.",
            "RSI not yet overbought, room to run.",
        ]

    def test_unconfirmed_markup_is_phase_c(self):
        outcome = classify(signals(trend="bullish", rsi_overbought=True))
        assert outcome.sub_phase is SubPhase.C
        assert outcome.strength == 15


class TestDistributionRule:
    """Mirror of accumulation near resistance."""

    def test_lower_highs_with_every_bonus(self):
        outcome = classify(signals(
            is_consolidating=True,
            near_resistance=True,
            lower_highs=True,
            rsi_overbought=True,
            mfi_overbought=True,
            macd_bearish=True,
        ))
        assert outcome.phase is Phase.DISTRIBUTION
        assert outcome.sub_phase is SubPhase.C
        assert outcome.strength == 70
        assert outcome.reasons[-1] == "MACD turning bearish."

    def test_drying_volume_is_phase_b(self):
        outcome = classify(signals(is_consolidating=True, rsi_overbought=True, volume_pattern="decreasing"))
        assert outcome.phase is Phase.DISTRIBUTION
        assert outcome.sub_phase is SubPhase.B
        assert outcome.strength == 35


class TestMarkdownRule:
    """Mirror of markup in a downtrend."""

    def test_confirmed_markdown(self):
        outcome = classify(signals(
            trend="bearish",
            indicators=IndicatorSet(ma20=95.0, ma50=100.0),
            volume_pattern="increasing",
            macd_bearish=True,
            rsi_oversold=True,
        ))
        assert outcome.phase is Phase.MARKDOWN
        assert outcome.sub_phase is SubPhase.D
        assert outcome.strength == 60
        assert "RSI not yet oversold, more downside possible." not in outcome.reasons

    def test_unconfirmed_markdown_is_phase_c(self):
        outcome = classify(signals(trend="bearish"))
        assert outcome.sub_phase is SubPhase.C
        assert outcome.strength == 25


class TestDetectPhase:
    """End-to-end classification of synthetic series."""

    def test_flat_49_bars_is_insufficient(self):
        result = detect_phase(flat_bars(49))
        assert result.phase is Phase.ACCUMULATION
        assert result.sub_phase is SubPhase.A
        assert result.strength == 0
        assert "Insufficient data" in result.reasoning
        assert result.support == pytest.approx(95.0)
        assert result.resistance == pytest.approx(105.0)

    def test_empty_series_is_insufficient(self):
        result = detect_phase([])
        assert result.strength == 0
        assert result.support == 0

    def test_flat_60_bars(self):
        # RSI and MFI read 100 with no losses, so the range counts as distribution
        result = detect_phase(flat_bars(60))
        assert result.phase is Phase.DISTRIBUTION
        assert result.sub_phase is SubPhase.A
        assert result.strength == 40
        assert result.reasoning == (
            "Price consolidating near resistance levels. Initial distribution phase. "
            "RSI overbought. MFI shows distribution."
        )

    def test_steady_uptrend_is_markup(self):
        result = detect_phase(make_bars([100.0 * 1.01 ** i for i in range(60)]))
        assert result.phase is Phase.MARKUP
        assert result.sub_phase is SubPhase.D
        assert result.strength in (25, 40)

    def test_steady_downtrend_is_markdown(self):
        result = detect_phase(make_bars([100.0 * 0.99 ** i for i in range(60)]))
        assert result.phase is Phase.MARKDOWN
        assert result.sub_phase is SubPhase.D
        assert result.strength in (25, 40)

    def test_slow_decline_in_range_is_accumulation(self):
        result = detect_phase(make_bars([100.0 * 0.995 ** i for i in range(60)]))
        assert result.phase is Phase.ACCUMULATION
        assert result.sub_phase is SubPhase.A
        assert result.strength in (40, 50)
        assert result.reasoning.startswith("Price consolidating near support levels.")
        assert "RSI oversold." in result.reasoning

    def test_reversed_input_gives_same_result(self):
        bars = make_bars([100.0 * 1.01 ** i for i in range(60)])
        assert detect_phase(list(reversed(bars))) == detect_phase(bars)

    @given(bars=price_bars(min_length=50, max_length=200))
    @settings(max_examples=100, deadline=None)
    def test_phase_totality(self, bars):
        """
        *For any* valid series of 50+ bars, exactly one phase and sub-phase
        is returned with strength in [0, 100].
        """
        result = detect_phase(bars)
        assert result.phase in set(Phase)
        assert result.sub_phase in set(SubPhase)
        assert 0 <= result.strength <= 100
        assert result.reasoning

    @given(bars=price_bars(min_length=1, max_length=120))
    @settings(max_examples=50, deadline=None)
    def test_idempotent(self, bars):
        assert detect_phase(bars) == detect_phase(bars)
