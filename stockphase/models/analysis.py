"""Phase classification, target and recommendation data models."""

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from stockphase.models.indicators import IndicatorSet


class Phase(str, Enum):
    """Wyckoff market-structure phase."""

    ACCUMULATION = "accumulation"
    MARKUP = "markup"
    DISTRIBUTION = "distribution"
    MARKDOWN = "markdown"


class SubPhase(str, Enum):
    """Finer-grained stage within a phase."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


class Signal(str, Enum):
    """Direction a recommendation factor points to."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class Action(str, Enum):
    """Recommended trading action."""

    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"


class SupportResistance(BaseModel):
    """Nearest support/resistance and every pivot price found."""

    support: float = Field(..., description="Closest level below the current close")
    resistance: float = Field(..., description="Closest level above the current close")
    pivot_points: list[float] = Field(default_factory=list, description="Pivot high/low prices")

    model_config = {"frozen": True}


class PhaseResult(BaseModel):
    """Outcome of one phase classification."""

    phase: Phase
    sub_phase: SubPhase
    strength: float = Field(..., ge=0, le=100, description="Heuristic confidence 0-100")
    support: float
    resistance: float
    indicators: IndicatorSet
    reasoning: str

    model_config = {"frozen": True}


class TargetResult(BaseModel):
    """Target, cut-loss and risk/reward, rounded to 2 decimals."""

    target_price: float
    cut_loss_price: float
    risk_reward_ratio: float
    potential_gain_percent: float
    potential_loss_percent: float

    model_config = {"frozen": True}


class PositionSize(BaseModel):
    """Share count that risks a fixed fraction of an account."""

    shares: int = Field(..., ge=0)
    position_value: float = Field(..., ge=0)
    risk_amount: float

    model_config = {"frozen": True}


class TradeSetup(BaseModel):
    """Letter grade for a phase/strength/risk-reward combination."""

    favorable: bool
    grade: str = Field(..., pattern="^[ABCDF]$")
    reason: str

    model_config = {"frozen": True}


class RecommendationFactor(BaseModel):
    """One explainable input to a recommendation."""

    name: str
    signal: Signal
    description: str
    weight: float = Field(..., ge=0, description="Contribution before signing")

    model_config = {"frozen": True}


class Recommendation(BaseModel):
    """Weighted buy/sell recommendation."""

    action: Action
    confidence: int = Field(..., ge=0, le=100)
    score: float = Field(..., ge=-100, le=100, description="Normalized factor score")
    entry_price_min: float
    entry_price_max: float
    target_price: float
    stop_loss: float
    risk_reward_ratio: float
    factors: list[RecommendationFactor] = Field(default_factory=list)
    summary: str

    model_config = {"frozen": True}


class MarketBreadth(BaseModel):
    """Share of a universe trading above its 200-day average."""

    above_ma200: int = Field(default=0, ge=0)
    below_ma200: int = Field(default=0, ge=0)
    no_data: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    percent_above: Optional[int] = Field(default=None, ge=0, le=100)

    model_config = {"frozen": True}


class AnalysisReport(BaseModel):
    """Everything the engine produces for one symbol on one day."""

    symbol: str = Field(..., min_length=1)
    as_of: Optional[dt.date] = Field(default=None, description="Date of the latest bar")
    current_price: float
    bar_count: int = Field(..., ge=0)
    phase: PhaseResult
    targets: TargetResult
    recommendation: Recommendation
    setup: TradeSetup

    model_config = {"frozen": True}
