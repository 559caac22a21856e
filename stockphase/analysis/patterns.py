"""Price pattern detectors: trading ranges and swing sequences."""

from typing import NamedTuple

from stockphase.models import PriceBar

CONSOLIDATION_LOOKBACK = 20
CONSOLIDATION_THRESHOLD = 15.0
SEQUENCE_CHUNKS = 3
MIN_BARS_PER_CHUNK = 5


class Consolidation(NamedTuple):
    is_consolidating: bool
    range_percent: float


def detect_consolidation(
    bars: list[PriceBar],
    lookback: int = CONSOLIDATION_LOOKBACK,
    threshold: float = CONSOLIDATION_THRESHOLD
) -> Consolidation:
    """Detect a trading range over the last `lookback` bars.

    Range percent is (max high - min low) / min low * 100; the series is
    consolidating when it is below `threshold`.
    """
    if lookback < 1 or len(bars) < lookback:
        return Consolidation(False, 0.0)

    recent = bars[-lookback:]
    range_high = max(b.high for b in recent)
    range_low = min(b.low for b in recent)

    if range_low <= 0:
        return Consolidation(False, 0.0)

    range_percent = (range_high - range_low) / range_low * 100
    return Consolidation(range_percent < threshold, range_percent)


def _chunk_extremes(bars: list[PriceBar], count: int, pick) -> list[float]:
    # Chunk size is floored, so a trailing partial chunk is never inspected.
    size = len(bars) // count
    return [pick(bars[i * size:(i + 1) * size]) for i in range(count)]


def has_higher_lows(bars: list[PriceBar], count: int = SEQUENCE_CHUNKS) -> bool:
    """Check that each of `count` equal chunks has a higher low than the last.

    This works on chunk extremes rather than swing points, which keeps it
    robust to single-bar noise at the cost of precision.
    """
    if count < 1 or len(bars) < count * MIN_BARS_PER_CHUNK:
        return False

    chunk_lows = _chunk_extremes(bars, count, lambda chunk: min(b.low for b in chunk))
    return all(curr > prev for prev, curr in zip(chunk_lows, chunk_lows[1:]))


def has_lower_highs(bars: list[PriceBar], count: int = SEQUENCE_CHUNKS) -> bool:
    """Check that each of `count` equal chunks has a lower high than the last."""
    if count < 1 or len(bars) < count * MIN_BARS_PER_CHUNK:
        return False

    chunk_highs = _chunk_extremes(bars, count, lambda chunk: max(b.high for b in chunk))
    return all(curr < prev for prev, curr in zip(chunk_highs, chunk_highs[1:]))
