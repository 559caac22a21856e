"""Data models for stockphase."""

from stockphase.models.bar import PriceBar
from stockphase.models.indicators import IndicatorSet, MACDResult
from stockphase.models.analysis import (
    Action,
    AnalysisReport,
    MarketBreadth,
    Phase,
    PhaseResult,
    PositionSize,
    Recommendation,
    RecommendationFactor,
    Signal,
    SubPhase,
    SupportResistance,
    TargetResult,
    TradeSetup,
)

__all__ = [
    "PriceBar",
    "IndicatorSet",
    "MACDResult",
    "Action",
    "AnalysisReport",
    "MarketBreadth",
    "Phase",
    "PhaseResult",
    "PositionSize",
    "Recommendation",
    "RecommendationFactor",
    "Signal",
    "SubPhase",
    "SupportResistance",
    "TargetResult",
    "TradeSetup",
]
