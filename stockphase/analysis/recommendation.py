"""Multi-factor weighted buy/sell recommendation.

Six evaluators run in a fixed order. Each returns a RecommendationFactor, or
None when its input is missing. Only participating factors count towards the
normalizing total, so missing flow or breadth data shifts weight onto the
factors that are present instead of dragging the score to neutral.
"""

from typing import Callable, Optional, Union

from pydantic import BaseModel, Field

from stockphase.models import (
    Action,
    Phase,
    Recommendation,
    RecommendationFactor,
    Signal,
    SubPhase,
)

PHASE_FACTOR = "Wyckoff Phase"
MA200_FACTOR = "MA200 Trend"
RSI_FACTOR = "RSI Momentum"
FLOW_FACTOR = "Foreign Flow"
BREADTH_FACTOR = "Market Breadth"
RISK_REWARD_FACTOR = "Risk/Reward"

FACTOR_WEIGHTS = {
    PHASE_FACTOR: 30,
    MA200_FACTOR: 20,
    RSI_FACTOR: 15,
    FLOW_FACTOR: 15,
    BREADTH_FACTOR: 10,
    RISK_REWARD_FACTOR: 10,
}

ENTRY_BUFFER = 0.02


class RecommendationInput(BaseModel):
    """Inputs for one symbol's recommendation."""

    current_price: float = Field(..., ge=0)
    phase: Phase
    sub_phase: Optional[SubPhase] = None
    strength: float = Field(default=0, ge=0, le=100)
    target_price: float
    cut_loss_price: float
    support: float
    resistance: float
    ma200: Optional[float] = None
    rsi14: Optional[float] = None
    foreign_net_flow: Optional[float] = Field(default=None, description="Recent net flow, positive = buying")
    market_breadth_percent: Optional[float] = Field(default=None, description="% of universe above MA200")

    model_config = {"frozen": True}


def _factor(name: str, signal: Signal, description: str, weight: float) -> RecommendationFactor:
    return RecommendationFactor(name=name, signal=signal, description=description, weight=weight)


def analyze_phase(phase: Phase, sub_phase: Optional[SubPhase], strength: float) -> RecommendationFactor:
    """Phase factor: full weight for late-stage ranges and markdown, 70% for early ranges."""
    weight = FACTOR_WEIGHTS[PHASE_FACTOR]
    late_stage = sub_phase in (SubPhase.C, SubPhase.D)

    if phase is Phase.ACCUMULATION:
        if late_stage:
            return _factor(
                PHASE_FACTOR, Signal.BULLISH,
                f"Accumulation Phase {sub_phase.value} - Smart money buying, breakout potential",
                weight,
            )
        return _factor(
            PHASE_FACTOR, Signal.BULLISH,
            "Accumulation Phase - Building base for potential uptrend",
            weight * 0.7,
        )

    if phase is Phase.MARKUP:
        return _factor(
            PHASE_FACTOR, Signal.BULLISH,
            "Markup Phase - Active uptrend, momentum in favor",
            weight * (1 if strength > 60 else 0.8),
        )

    if phase is Phase.DISTRIBUTION:
        if late_stage:
            return _factor(
                PHASE_FACTOR, Signal.BEARISH,
                f"Distribution Phase {sub_phase.value} - Smart money selling, breakdown risk",
                weight,
            )
        return _factor(
            PHASE_FACTOR, Signal.BEARISH,
            "Distribution Phase - Topping pattern, be cautious",
            weight * 0.7,
        )

    return _factor(
        PHASE_FACTOR, Signal.BEARISH,
        "Markdown Phase - Active downtrend, avoid buying",
        weight,
    )


def analyze_ma200(current_price: float, ma200: float) -> RecommendationFactor:
    if ma200 <= 0:
        return _factor(MA200_FACTOR, Signal.NEUTRAL, "MA200 unavailable", 0)

    percent_above = (current_price - ma200) / ma200 * 100

    if percent_above > 10:
        return _factor(MA200_FACTOR, Signal.BULLISH,
                       f"Price {percent_above:.1f}% above MA200 - Strong uptrend", 20)
    if percent_above > 0:
        return _factor(MA200_FACTOR, Signal.BULLISH,
                       f"Price {percent_above:.1f}% above MA200 - Uptrend intact", 15)
    if percent_above > -10:
        return _factor(MA200_FACTOR, Signal.BEARISH,
                       f"Price {abs(percent_above):.1f}% below MA200 - Downtrend", 15)
    return _factor(MA200_FACTOR, Signal.BEARISH,
                   f"Price {abs(percent_above):.1f}% below MA200 - Strong downtrend", 20)


def analyze_rsi(rsi: float) -> RecommendationFactor:
    if rsi < 30:
        return _factor(RSI_FACTOR, Signal.BULLISH, f"RSI {rsi:.0f} - Oversold, potential bounce", 15)
    if rsi < 45:
        return _factor(RSI_FACTOR, Signal.NEUTRAL, f"RSI {rsi:.0f} - Weak momentum", 5)
    if rsi < 55:
        return _factor(RSI_FACTOR, Signal.NEUTRAL, f"RSI {rsi:.0f} - Neutral momentum", 0)
    if rsi < 70:
        return _factor(RSI_FACTOR, Signal.BULLISH, f"RSI {rsi:.0f} - Strong momentum", 10)
    return _factor(RSI_FACTOR, Signal.BEARISH, f"RSI {rsi:.0f} - Overbought, pullback risk", 15)


def analyze_foreign_flow(net_flow: float) -> RecommendationFactor:
    """Flow factor; `net_flow` is in shares."""
    millions = net_flow / 1_000_000
    thousands = net_flow / 1_000

    if net_flow > 1_000_000:
        return _factor(FLOW_FACTOR, Signal.BULLISH, f"Net foreign buying +{millions:.1f}M shares", 15)
    if net_flow > 0:
        return _factor(FLOW_FACTOR, Signal.BULLISH, f"Slight foreign buying +{thousands:.0f}K shares", 8)
    if net_flow > -1_000_000:
        return _factor(FLOW_FACTOR, Signal.BEARISH, f"Slight foreign selling {thousands:.0f}K shares", 8)
    return _factor(FLOW_FACTOR, Signal.BEARISH, f"Net foreign selling {millions:.1f}M shares", 15)


def analyze_market_breadth(percent_above: float) -> RecommendationFactor:
    label = f"{percent_above:g}% of stocks above MA200"

    if percent_above >= 70:
        return _factor(BREADTH_FACTOR, Signal.BULLISH, f"{label} - Strong market", 10)
    if percent_above >= 50:
        return _factor(BREADTH_FACTOR, Signal.BULLISH, f"{label} - Healthy market", 7)
    if percent_above >= 30:
        return _factor(BREADTH_FACTOR, Signal.BEARISH, f"{label} - Weak market", 7)
    return _factor(BREADTH_FACTOR, Signal.BEARISH, f"{label} - Bear market", 10)


def _reward_to_risk(current_price: float, target_price: float, cut_loss_price: float) -> float:
    potential_loss = current_price - cut_loss_price
    return (target_price - current_price) / potential_loss if potential_loss > 0 else 0.0


def analyze_risk_reward(
    current_price: float,
    support: float,
    target_price: float,
    cut_loss_price: float,
) -> RecommendationFactor:
    rr = _reward_to_risk(current_price, target_price, cut_loss_price)
    distance_to_support = (current_price - support) / current_price * 100 if current_price > 0 else 0.0

    if rr >= 3 and distance_to_support < 5:
        return _factor(RISK_REWARD_FACTOR, Signal.BULLISH,
                       f"R:R {rr:.1f}:1, near support - Excellent entry", 10)
    if rr >= 2:
        return _factor(RISK_REWARD_FACTOR, Signal.BULLISH, f"R:R {rr:.1f}:1 - Favorable setup", 8)
    if rr >= 1:
        return _factor(RISK_REWARD_FACTOR, Signal.NEUTRAL, f"R:R {rr:.1f}:1 - Acceptable but not ideal", 3)
    return _factor(RISK_REWARD_FACTOR, Signal.BEARISH, f"R:R {rr:.1f}:1 - Poor risk/reward", 10)


FactorEvaluator = Callable[[RecommendationInput], Optional[RecommendationFactor]]

FACTOR_EVALUATORS: tuple[FactorEvaluator, ...] = (
    lambda i: analyze_phase(i.phase, i.sub_phase, i.strength),
    lambda i: analyze_ma200(i.current_price, i.ma200) if i.ma200 is not None else None,
    lambda i: analyze_rsi(i.rsi14) if i.rsi14 is not None else None,
    lambda i: analyze_foreign_flow(i.foreign_net_flow) if i.foreign_net_flow is not None else None,
    lambda i: analyze_market_breadth(i.market_breadth_percent) if i.market_breadth_percent is not None else None,
    lambda i: analyze_risk_reward(i.current_price, i.support, i.target_price, i.cut_loss_price),
)


def _signed(factor: RecommendationFactor) -> float:
    if factor.signal is Signal.BULLISH:
        return factor.weight
    if factor.signal is Signal.BEARISH:
        return -factor.weight
    return 0.0


def score_factors(factors: list[RecommendationFactor]) -> float:
    """Normalize signed factor weights by the participating fixed weights.

    Returns:
        Score in [-100, 100]; 0 when no factor participates.
    """
    total_weight = sum(FACTOR_WEIGHTS[f.name] for f in factors)
    if total_weight <= 0:
        return 0.0

    score = sum(_signed(f) for f in factors) / total_weight * 100
    return max(-100.0, min(100.0, score))


def score_to_action(score: float) -> Action:
    if score >= 50:
        return Action.STRONG_BUY
    if score >= 20:
        return Action.BUY
    if score >= -20:
        return Action.HOLD
    if score >= -50:
        return Action.SELL
    return Action.STRONG_SELL


def calculate_entry_range(current_price: float, support: float, action: Action) -> tuple[float, float]:
    """Entry band: near support for buys, +/-2% for holds, (0, 0) for sells."""
    if action in (Action.STRONG_BUY, Action.BUY):
        buffer = current_price * ENTRY_BUFFER
        return max(support, current_price - buffer), current_price + buffer

    if action is Action.HOLD:
        return current_price * (1 - ENTRY_BUFFER), current_price * (1 + ENTRY_BUFFER)

    return 0.0, 0.0


def build_summary(
    action: Action,
    phase: Phase,
    factors: list[RecommendationFactor],
    risk_reward_ratio: float,
) -> str:
    bullish = sum(1 for f in factors if f.signal is Signal.BULLISH)
    bearish = sum(1 for f in factors if f.signal is Signal.BEARISH)

    if action is Action.STRONG_BUY:
        return (
            f"Strong buying opportunity. {bullish} bullish signals align with {phase.value} phase. "
            f"Favorable R:R of {risk_reward_ratio:.1f}:1."
        )
    if action is Action.BUY:
        return (
            f"Consider buying. {bullish} bullish signals support entry. "
            "Wait for pullback to support for better entry."
        )
    if action is Action.HOLD:
        return (
            f"Mixed signals. {bullish} bullish vs {bearish} bearish factors. "
            "Hold existing positions, avoid new entries."
        )
    if action is Action.SELL:
        return (
            f"Consider reducing position. {bearish} bearish signals suggest caution. "
            "Take partial profits."
        )
    return (
        f"Exit recommended. {bearish} bearish signals with {phase.value} phase indicate high risk. "
        "Preserve capital."
    )


def generate_recommendation(data: Union[RecommendationInput, dict]) -> Recommendation:
    """Combine the factor evaluations into a recommendation.

    Args:
        data: RecommendationInput, or a dict with the same fields.

    Returns:
        Recommendation whose factors are listed in evaluation order.
    """
    if isinstance(data, dict):
        data = RecommendationInput(**data)

    factors = [f for f in (evaluate(data) for evaluate in FACTOR_EVALUATORS) if f is not None]

    score = score_factors(factors)
    action = score_to_action(score)
    confidence = min(100, abs(score) + 20)
    entry_min, entry_max = calculate_entry_range(data.current_price, data.support, action)
    rr = _reward_to_risk(data.current_price, data.target_price, data.cut_loss_price)

    return Recommendation(
        action=action,
        confidence=round(confidence),
        score=round(score, 2),
        entry_price_min=round(entry_min, 2),
        entry_price_max=round(entry_max, 2),
        target_price=data.target_price,
        stop_loss=data.cut_loss_price,
        risk_reward_ratio=round(rr, 2),
        factors=factors,
        summary=build_summary(action, data.phase, factors, rr),
    )
