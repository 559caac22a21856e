"""Technical indicator calculations for phase analysis.

Every function here is a pure mapping from a price history to the latest
indicator value. When the history is shorter than an indicator's lookback the
result is None (or an empty list for full series), never zero.
"""

from typing import Optional

from stockphase.models import IndicatorSet, MACDResult, PriceBar
from stockphase.series import closes, sort_bars, volumes

MA_PERIODS = (20, 50, 200)
RSI_PERIOD = 14
MFI_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
VOLUME_LOOKBACK = 20


def calculate_sma(prices: list[float], period: int) -> Optional[float]:
    """Calculate the Simple Moving Average of the last `period` values.

    Args:
        prices: List of price values (typically close prices)
        period: Number of periods for the moving average

    Returns:
        The latest SMA, or None if there are fewer than `period` prices.
    """
    if period < 1 or len(prices) < period:
        return None

    return sum(prices[-period:]) / period


def calculate_ema(prices: list[float], period: int) -> list[float]:
    """Calculate Exponential Moving Average.

    The first value is the SMA of the first `period` prices; each later value
    moves towards the price by 2 / (period + 1).

    Args:
        prices: List of price values
        period: Number of periods for the EMA

    Returns:
        List of len(prices) - period + 1 EMA values, empty if too short.
    """
    if period < 1 or len(prices) < period:
        return []

    multiplier = 2 / (period + 1)

    # First EMA is SMA
    result = [sum(prices[:period]) / period]

    for price in prices[period:]:
        prev = result[-1]
        result.append(prev + (price - prev) * multiplier)

    return result


def calculate_rsi(prices: list[float], period: int = RSI_PERIOD) -> Optional[float]:
    """Calculate Relative Strength Index with Wilder smoothing.

    Average gain and loss are seeded with the simple mean of the first
    `period` changes and then smoothed with (avg * (period - 1) + x) / period.

    Args:
        prices: List of price values (typically close prices)
        period: RSI period (default 14)

    Returns:
        Latest RSI (0-100), or None if there are fewer than period + 1 prices.
    """
    if period < 1 or len(prices) < period + 1:
        return None

    changes = [prices[i] - prices[i - 1] for i in range(1, len(prices))]
    gains = [max(0.0, c) for c in changes]
    losses = [max(0.0, -c) for c in changes]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period

    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def calculate_mfi(bars: list[PriceBar], period: int = MFI_PERIOD) -> Optional[float]:
    """Calculate Money Flow Index over the last `period` bars.

    Typical price is (high + low + close) / 3 and raw money flow is typical
    price times volume. A bar's flow is positive when its typical price rose
    from the prior bar, negative when it fell, and ignored when unchanged.

    Args:
        bars: Bars in ascending date order
        period: MFI period (default 14)

    Returns:
        Latest MFI (0-100), or None if there are fewer than period + 1 bars.
    """
    if period < 1 or len(bars) < period + 1:
        return None

    typical = [(b.high + b.low + b.close) / 3 for b in bars]

    positive_flow = 0.0
    negative_flow = 0.0

    for i in range(len(bars) - period, len(bars)):
        raw_flow = typical[i] * bars[i].volume
        if typical[i] > typical[i - 1]:
            positive_flow += raw_flow
        elif typical[i] < typical[i - 1]:
            negative_flow += raw_flow

    if negative_flow == 0:
        return 100.0

    money_ratio = positive_flow / negative_flow
    return 100 - (100 / (1 + money_ratio))


def calculate_macd(
    prices: list[float],
    fast: int = MACD_FAST,
    slow: int = MACD_SLOW,
    signal: int = MACD_SIGNAL
) -> MACDResult:
    """Calculate MACD (Moving Average Convergence Divergence).

    The fast EMA series is longer than the slow one, so it is offset by
    slow - fast entries to line both up on the latest bar.

    Args:
        prices: List of price values
        fast: Fast EMA period (default 12)
        slow: Slow EMA period (default 26)
        signal: Signal line period (default 9)

    Returns:
        MACDResult whose fields are all None with fewer than slow + signal prices.
    """
    empty = MACDResult()
    if fast < 1 or slow < 1 or signal < 1 or len(prices) < slow + signal:
        return empty

    fast_ema = calculate_ema(prices, fast)
    slow_ema = calculate_ema(prices, slow)

    if not fast_ema or not slow_ema:
        return empty

    offset = slow - fast
    macd_values = []
    for i, slow_value in enumerate(slow_ema):
        fast_idx = i + offset
        # Out-of-range indices only occur when fast > slow
        if 0 <= fast_idx < len(fast_ema):
            macd_values.append(fast_ema[fast_idx] - slow_value)

    if len(macd_values) < signal:
        return empty

    signal_ema = calculate_ema(macd_values, signal)
    if not signal_ema:
        return empty

    macd_line = macd_values[-1]
    signal_line = signal_ema[-1]

    return MACDResult(
        macd_line=macd_line,
        signal=signal_line,
        histogram=macd_line - signal_line,
    )


def calculate_volume_stats(
    volume: list[float],
    lookback: int = VOLUME_LOOKBACK
) -> tuple[Optional[float], Optional[float]]:
    """Calculate average volume and the latest bar's ratio to it.

    Args:
        volume: List of volume values
        lookback: Averaging window (default 20)

    Returns:
        Tuple of (average volume, current volume / average). Both None if
        there are fewer than `lookback` values; the ratio is None when the
        average is zero.
    """
    if lookback < 1 or len(volume) < lookback:
        return None, None

    avg = sum(volume[-lookback:]) / lookback
    ratio = volume[-1] / avg if avg > 0 else None

    return avg, ratio


def calculate_indicators(bars: list[PriceBar]) -> IndicatorSet:
    """Calculate every indicator in an IndicatorSet for the latest bar.

    Args:
        bars: Bars in any order; they are sorted by date first.

    Returns:
        IndicatorSet with None for indicators lacking history.
    """
    if not bars:
        return IndicatorSet()

    ordered = sort_bars(bars)
    close = closes(ordered)

    ma20, ma50, ma200 = (calculate_sma(close, p) for p in MA_PERIODS)
    macd = calculate_macd(close)
    volume_avg, volume_ratio = calculate_volume_stats(volumes(ordered))

    return IndicatorSet(
        ma20=ma20,
        ma50=ma50,
        ma200=ma200,
        rsi14=calculate_rsi(close, RSI_PERIOD),
        mfi14=calculate_mfi(ordered, MFI_PERIOD),
        macd_line=macd.macd_line,
        macd_signal=macd.signal,
        macd_histogram=macd.histogram,
        volume_avg20=volume_avg,
        volume_ratio=volume_ratio,
    )


def identify_trend(
    price: float,
    ma20: Optional[float],
    ma50: Optional[float]
) -> str:
    """Classify trend from price vs MA20/MA50 alignment.

    Returns:
        "bullish" when price > MA20, price > MA50 and MA20 > MA50,
        "bearish" when none of the three hold, otherwise "neutral".
    """
    if ma20 is None or ma50 is None:
        return "neutral"

    if price > ma20 and price > ma50 and ma20 > ma50:
        return "bullish"
    if price <= ma20 and price <= ma50 and ma20 <= ma50:
        return "bearish"
    return "neutral"


def analyze_volume(bars: list[PriceBar], lookback: int = VOLUME_LOOKBACK) -> str:
    """Compare mean volume of the second half of the window to the first half.

    Returns:
        "increasing" above +20%, "decreasing" below -20%, otherwise "stable".
    """
    if lookback < 2 or len(bars) < lookback:
        return "stable"

    recent = volumes(bars[-lookback:])
    half = lookback // 2
    first_avg = sum(recent[:half]) / half
    second_avg = sum(recent[half:]) / (lookback - half)

    if first_avg == 0:
        return "increasing" if second_avg > 0 else "stable"

    change_percent = (second_avg - first_avg) / first_avg * 100

    if change_percent > 20:
        return "increasing"
    if change_percent < -20:
        return "decreasing"
    return "stable"
