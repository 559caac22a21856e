"""Market-wide scalars fed into every symbol's recommendation.

Both are computed once per batch by the caller and passed to the per-symbol
analysis as plain numbers.
"""

from typing import Iterable, Optional, Sequence

from stockphase.models import MarketBreadth

DEFAULT_FLOW_DAYS = 5


def calculate_market_breadth(
    snapshots: Iterable[tuple[float, Optional[float]]]
) -> MarketBreadth:
    """Count how many symbols close above their 200-day average.

    Args:
        snapshots: (latest close, MA200) pairs; MA200 may be None.

    Returns:
        MarketBreadth whose percent_above is rounded to a whole percent and is
        None when no symbol has an MA200.
    """
    above = below = no_data = 0

    for price, ma200 in snapshots:
        if ma200 is None or ma200 <= 0:
            no_data += 1
        elif price > ma200:
            above += 1
        else:
            below += 1

    with_data = above + below
    percent = round(above / with_data * 100) if with_data else None

    return MarketBreadth(
        above_ma200=above,
        below_ma200=below,
        no_data=no_data,
        total=with_data + no_data,
        percent_above=percent,
    )


def sum_recent_net_flow(
    daily_net: Sequence[Optional[float]],
    days: int = DEFAULT_FLOW_DAYS
) -> Optional[float]:
    """Sum the last `days` daily net flows (oldest first, most recent last).

    Missing days count as zero. Returns None when there is no flow data.
    """
    if not daily_net or days < 1:
        return None

    return float(sum(v or 0 for v in daily_net[-days:]))
