"""Wyckoff phase classification.

Classification is stateless: each call measures trend, consolidation, price
position and momentum on the given bars and walks PHASE_RULES in order. The
first rule whose predicate matches builds the result.

The two consolidation rules (accumulation, distribution) sit before their
trend counterparts (markup, markdown). A series that is consolidating while
its moving averages still trend is therefore labelled by its range behaviour.
"""

from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from stockphase.analysis.levels import find_key_levels, synthetic_levels
from stockphase.analysis.patterns import (
    detect_consolidation,
    has_higher_lows,
    has_lower_highs,
)
from stockphase.indicators.technical import (
    analyze_volume,
    calculate_indicators,
    identify_trend,
)
from stockphase.models import IndicatorSet, Phase, PhaseResult, PriceBar, SubPhase
from stockphase.series import latest_close, sort_bars

MIN_BARS = 50
NEAR_LEVEL = 0.05
OVERSOLD = 30
OVERBOUGHT = 70
TRANSITION_STRENGTH = 25

INSUFFICIENT_DATA = "Insufficient data for analysis"


@dataclass(frozen=True)
class PhaseSignals:
    """Everything the rule table looks at, measured once per call."""

    price: float
    indicators: IndicatorSet
    support: float
    resistance: float
    trend: str
    is_consolidating: bool
    higher_lows: bool
    lower_highs: bool
    volume_pattern: str
    near_support: bool
    near_resistance: bool
    rsi_oversold: bool
    rsi_overbought: bool
    mfi_oversold: bool
    mfi_overbought: bool
    macd_bullish: bool
    macd_bearish: bool

    @property
    def ma20_above_ma50(self) -> bool:
        ma20, ma50 = self.indicators.ma20, self.indicators.ma50
        return ma20 is not None and ma50 is not None and ma20 > ma50

    @property
    def ma20_below_ma50(self) -> bool:
        ma20, ma50 = self.indicators.ma20, self.indicators.ma50
        return ma20 is not None and ma50 is not None and ma20 < ma50


class PhaseOutcome(NamedTuple):
    phase: Phase
    sub_phase: SubPhase
    strength: float
    reasons: list[str]


class PhaseRule(NamedTuple):
    name: str
    matches: Callable[[PhaseSignals], bool]
    build: Callable[[PhaseSignals], PhaseOutcome]


def _below(value: Optional[float], bound: float) -> bool:
    return value is not None and value < bound


def _above(value: Optional[float], bound: float) -> bool:
    return value is not None and value > bound


def measure_signals(bars: list[PriceBar]) -> PhaseSignals:
    """Compute the classifier inputs for bars in ascending date order."""
    price = latest_close(bars)
    indicators = calculate_indicators(bars)
    levels = find_key_levels(bars)
    consolidation = detect_consolidation(bars)
    histogram = indicators.macd_histogram

    return PhaseSignals(
        price=price,
        indicators=indicators,
        support=levels.support,
        resistance=levels.resistance,
        trend=identify_trend(price, indicators.ma20, indicators.ma50),
        is_consolidating=consolidation.is_consolidating,
        higher_lows=has_higher_lows(bars),
        lower_highs=has_lower_highs(bars),
        volume_pattern=analyze_volume(bars),
        near_support=levels.support > 0 and (price - levels.support) / levels.support < NEAR_LEVEL,
        near_resistance=price > 0 and (levels.resistance - price) / price < NEAR_LEVEL,
        rsi_oversold=_below(indicators.rsi14, OVERSOLD),
        rsi_overbought=_above(indicators.rsi14, OVERBOUGHT),
        mfi_oversold=_below(indicators.mfi14, OVERSOLD),
        mfi_overbought=_above(indicators.mfi14, OVERBOUGHT),
        macd_bullish=_above(histogram, 0),
        macd_bearish=_below(histogram, 0),
    )


def _range_outcome(
    phase: Phase,
    opening: str,
    sequence: tuple[bool, str],
    volume_drying: bool,
    climax: str,
    bonuses: list[tuple[bool, int, str]],
) -> PhaseOutcome:
    """Build an accumulation/distribution outcome.

    Sub-phase C needs the swing sequence (base 30), B a drying-up volume
    (base 20), otherwise A (base 10).
    """
    reasons = [opening]
    has_sequence, sequence_text = sequence

    if has_sequence:
        sub_phase, strength = SubPhase.C, 30
        reasons.append(sequence_text)
    elif volume_drying:
        sub_phase, strength = SubPhase.B, 20
        reasons.append("Volume decreasing during consolidation.")
    else:
        sub_phase, strength = SubPhase.A, 10
        reasons.append(climax)

    for applies, points, text in bonuses:
        if applies:
            strength += points
            reasons.append(text)

    return PhaseOutcome(phase, sub_phase, strength, reasons)


def _trend_outcome(
    phase: Phase,
    opening: str,
    ma_confirmed: tuple[bool, str],
    bonuses: list[tuple[bool, int, str]],
) -> PhaseOutcome:
    """Build a markup/markdown outcome: D (base 25) with MA confirmation, else C (base 15)."""
    reasons = [opening]
    confirmed, confirmed_text = ma_confirmed

    if confirmed:
        sub_phase, strength = SubPhase.D, 25
        reasons.append(confirmed_text)
    else:
        sub_phase, strength = SubPhase.C, 15

    for applies, points, text in bonuses:
        if applies:
            strength += points
            reasons.append(text)

    return PhaseOutcome(phase, sub_phase, strength, reasons)


def _accumulation(s: PhaseSignals) -> PhaseOutcome:
    return _range_outcome(
        Phase.ACCUMULATION,
        "Price consolidating near support levels.",
        (s.higher_lows, "Higher lows forming."),
        s.volume_pattern == "decreasing",
        "Initial accumulation phase.",
        [
            (s.rsi_oversold, 15, "RSI oversold."),
            (s.mfi_oversold, 15, "MFI shows accumulation."),
            (s.macd_bullish, 10, "MACD turning bullish."),
        ],
    )


def _markup(s: PhaseSignals) -> PhaseOutcome:
    return _trend_outcome(
        Phase.MARKUP,
        "Price in uptrend above moving averages.",
        (s.ma20_above_ma50, "MA20 above MA50."),
        [
            (s.volume_pattern == "increasing", 20, "Volume increasing on up moves."),
            (s.macd_bullish, 15, "MACD bullish."),
            (not s.rsi_overbought, 10, "RSI not yet overbought, room to run."),
        ],
    )


def _distribution(s: PhaseSignals) -> PhaseOutcome:
    return _range_outcome(
        Phase.DISTRIBUTION,
        "Price consolidating near resistance levels.",
        (s.lower_highs, "Lower highs forming."),
        s.volume_pattern == "decreasing",
        "Initial distribution phase.",
        [
            (s.rsi_overbought, 15, "RSI overbought."),
            (s.mfi_overbought, 15, "MFI shows distribution."),
            (s.macd_bearish, 10, "MACD turning bearish."),
        ],
    )


def _markdown(s: PhaseSignals) -> PhaseOutcome:
    return _trend_outcome(
        Phase.MARKDOWN,
        "Price in downtrend below moving averages.",
        (s.ma20_below_ma50, "MA20 below MA50."),
        [
            (s.volume_pattern == "increasing", 20, "Volume increasing on down moves."),
            (s.macd_bearish, 15, "MACD bearish."),
            (not s.rsi_oversold, 10, "RSI not yet oversold, more downside possible."),
        ],
    )


def _transition(s: PhaseSignals) -> PhaseOutcome:
    return PhaseOutcome(
        Phase.ACCUMULATION,
        SubPhase.A,
        TRANSITION_STRENGTH,
        ["Market in transition, monitoring for clearer signals."],
    )


PHASE_RULES: tuple[PhaseRule, ...] = (
    PhaseRule(
        "accumulation",
        lambda s: s.is_consolidating and (s.near_support or s.rsi_oversold or s.mfi_oversold),
        _accumulation,
    ),
    PhaseRule(
        "markup",
        lambda s: s.trend == "bullish" and not s.is_consolidating,
        _markup,
    ),
    PhaseRule(
        "distribution",
        lambda s: s.is_consolidating and (s.near_resistance or s.rsi_overbought or s.mfi_overbought),
        _distribution,
    ),
    PhaseRule(
        "markdown",
        lambda s: s.trend == "bearish" and not s.is_consolidating,
        _markdown,
    ),
    PhaseRule("transition", lambda s: True, _transition),
)


def match_rule(signals: PhaseSignals) -> PhaseRule:
    """Return the first rule in PHASE_RULES that matches `signals`."""
    for rule in PHASE_RULES:
        if rule.matches(signals):
            return rule
    # The transition rule always matches
    return PHASE_RULES[-1]


def detect_phase(bars: list[PriceBar]) -> PhaseResult:
    """Classify the Wyckoff phase of a price series.

    Args:
        bars: Daily bars in any order; they are sorted by date first.

    Returns:
        PhaseResult with strength clamped to [0, 100]. With fewer than 50
        bars the result is accumulation/A, strength 0, on a +/-5% band.
    """
    ordered = sort_bars(bars)

    if len(ordered) < MIN_BARS:
        levels = synthetic_levels(latest_close(ordered))
        return PhaseResult(
            phase=Phase.ACCUMULATION,
            sub_phase=SubPhase.A,
            strength=0,
            support=levels.support,
            resistance=levels.resistance,
            indicators=calculate_indicators(ordered),
            reasoning=INSUFFICIENT_DATA,
        )

    signals = measure_signals(ordered)
    outcome = match_rule(signals).build(signals)

    return PhaseResult(
        phase=outcome.phase,
        sub_phase=outcome.sub_phase,
        strength=max(0, min(100, outcome.strength)),
        support=signals.support,
        resistance=signals.resistance,
        indicators=signals.indicators,
        reasoning=" ".join(outcome.reasons),
    )
