"""Technical indicators module."""

from stockphase.indicators.technical import (
    analyze_volume,
    calculate_ema,
    calculate_indicators,
    calculate_macd,
    calculate_mfi,
    calculate_rsi,
    calculate_sma,
    calculate_volume_stats,
    identify_trend,
)

__all__ = [
    "analyze_volume",
    "calculate_ema",
    "calculate_indicators",
    "calculate_macd",
    "calculate_mfi",
    "calculate_rsi",
    "calculate_sma",
    "calculate_volume_stats",
    "identify_trend",
]
