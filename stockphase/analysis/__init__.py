"""Support/resistance, pattern, phase, target and recommendation analysis."""

from stockphase.analysis.levels import find_key_levels, find_pivots
from stockphase.analysis.market import calculate_market_breadth, sum_recent_net_flow
from stockphase.analysis.patterns import (
    detect_consolidation,
    has_higher_lows,
    has_lower_highs,
)
from stockphase.analysis.phase import PHASE_RULES, detect_phase
from stockphase.analysis.pipeline import analyze_batch, analyze_symbol
from stockphase.analysis.recommendation import (
    RecommendationInput,
    generate_recommendation,
    score_factors,
)
from stockphase.analysis.targets import (
    calculate_position_size,
    calculate_targets,
    evaluate_trade_setup,
)

__all__ = [
    "PHASE_RULES",
    "RecommendationInput",
    "analyze_batch",
    "analyze_symbol",
    "calculate_market_breadth",
    "calculate_position_size",
    "calculate_targets",
    "detect_consolidation",
    "detect_phase",
    "evaluate_trade_setup",
    "find_key_levels",
    "find_pivots",
    "generate_recommendation",
    "has_higher_lows",
    "has_lower_highs",
    "score_factors",
    "sum_recent_net_flow",
]
