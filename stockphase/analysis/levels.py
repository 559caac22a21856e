"""Support/resistance discovery from pivot highs and lows."""

from stockphase.models import PriceBar, SupportResistance
from stockphase.series import latest_close, sort_bars

MIN_BARS_FOR_PIVOTS = 20
PIVOT_SPAN = 2
FALLBACK_BAND = 0.05


def synthetic_levels(price: float) -> SupportResistance:
    """Return a +/-5% band around `price` with no pivots."""
    return SupportResistance(
        support=price * (1 - FALLBACK_BAND),
        resistance=price * (1 + FALLBACK_BAND),
        pivot_points=[],
    )


def find_pivots(bars: list[PriceBar], span: int = PIVOT_SPAN) -> list[float]:
    """Find pivot high and low prices.

    A bar is a pivot high when its high strictly exceeds the highs of the
    `span` bars on each side; pivot lows mirror this on the low.

    Args:
        bars: Bars in ascending date order
        span: Bars required on each side (default 2)

    Returns:
        Pivot prices in bar order, highs before lows on the same bar.
    """
    pivots = []

    for i in range(span, len(bars) - span):
        neighbours = bars[i - span:i] + bars[i + 1:i + span + 1]
        curr = bars[i]

        if all(curr.high > b.high for b in neighbours):
            pivots.append(curr.high)
        if all(curr.low < b.low for b in neighbours):
            pivots.append(curr.low)

    return pivots


def find_key_levels(bars: list[PriceBar]) -> SupportResistance:
    """Find the nearest support and resistance around the latest close.

    Support is the highest pivot strictly below the close and resistance the
    lowest pivot strictly above it. Missing sides fall back to close * 0.95
    and close * 1.05; fewer than 20 bars gives the synthetic band outright.
    """
    ordered = sort_bars(bars)
    if len(ordered) < MIN_BARS_FOR_PIVOTS:
        return synthetic_levels(latest_close(ordered))

    price = latest_close(ordered)
    pivots = find_pivots(ordered)

    below = [p for p in pivots if p < price]
    above = [p for p in pivots if p > price]

    return SupportResistance(
        support=max(below) if below else price * (1 - FALLBACK_BAND),
        resistance=min(above) if above else price * (1 + FALLBACK_BAND),
        pivot_points=pivots,
    )
