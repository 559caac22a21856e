"""Price series helpers shared by every analysis stage.

A price series is a plain ``list[PriceBar]`` in ascending date order. The
helpers here never mutate the list they are given.
"""

from typing import Iterable

from stockphase.models import PriceBar


class PriceSeriesError(ValueError):
    """Raised when a series violates the ordering contract."""


def sort_bars(bars: Iterable[PriceBar]) -> list[PriceBar]:
    """Return a new list of bars sorted by date ascending."""
    return sorted(bars, key=lambda bar: bar.date)


def prepare_series(bars: Iterable[PriceBar]) -> list[PriceBar]:
    """Sort bars and reject duplicate trading days.

    Args:
        bars: Bars in any order.

    Returns:
        Bars ordered strictly ascending by date.

    Raises:
        PriceSeriesError: If two bars share a date.
    """
    ordered = sort_bars(bars)
    for prev, curr in zip(ordered, ordered[1:]):
        if prev.date == curr.date:
            raise PriceSeriesError(f"Duplicate bar for {curr.date.isoformat()}")
    return ordered


def closes(bars: list[PriceBar]) -> list[float]:
    return [bar.close for bar in bars]


def highs(bars: list[PriceBar]) -> list[float]:
    return [bar.high for bar in bars]


def lows(bars: list[PriceBar]) -> list[float]:
    return [bar.low for bar in bars]


def volumes(bars: list[PriceBar]) -> list[float]:
    return [bar.volume for bar in bars]


def latest_close(bars: list[PriceBar]) -> float:
    """Close of the last bar, or 0.0 for an empty series."""
    return bars[-1].close if bars else 0.0
