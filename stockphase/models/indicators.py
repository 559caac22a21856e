"""Indicator data models."""

from typing import Optional

from pydantic import BaseModel, Field


class MACDResult(BaseModel):
    """Latest MACD line, signal and histogram values."""

    macd_line: Optional[float] = Field(default=None, description="Fast EMA minus slow EMA")
    signal: Optional[float] = Field(default=None, description="EMA of the MACD line")
    histogram: Optional[float] = Field(default=None, description="MACD line minus signal")

    model_config = {"frozen": True}


class IndicatorSet(BaseModel):
    """Latest value of every indicator the classifier consumes.

    A value is None when the series is too short for its lookback.
    """

    ma20: Optional[float] = Field(default=None, description="20-day SMA")
    ma50: Optional[float] = Field(default=None, description="50-day SMA")
    ma200: Optional[float] = Field(default=None, description="200-day SMA")
    rsi14: Optional[float] = Field(default=None, description="14-day RSI")
    mfi14: Optional[float] = Field(default=None, description="14-day MFI")
    macd_line: Optional[float] = Field(default=None, description="MACD line")
    macd_signal: Optional[float] = Field(default=None, description="MACD signal line")
    macd_histogram: Optional[float] = Field(default=None, description="MACD histogram")
    volume_avg20: Optional[float] = Field(default=None, description="20-day average volume")
    volume_ratio: Optional[float] = Field(default=None, description="Current volume / 20-day average")

    model_config = {"frozen": True}
