"""Load daily bars from CSV files.

Expected columns (case-insensitive): date, open, high, low, close, volume.
An optional foreign_net column holds daily net foreign flow in shares.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd
from pydantic import ValidationError

from stockphase.models import PriceBar
from stockphase.series import PriceSeriesError, prepare_series

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("date", "open", "high", "low", "close", "volume")
NUMERIC_COLUMNS = ("open", "high", "low", "close", "volume")
FLOW_COLUMN = "foreign_net"


class DataLoadError(Exception):
    """Raised when a bar file is missing, malformed or has invalid bars."""


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.rename(columns=lambda c: str(c).strip().lower())


def bars_from_frame(df: pd.DataFrame) -> list[PriceBar]:
    """Convert a DataFrame of OHLCV rows to a validated price series.

    Rows with a missing price are dropped, missing volume counts as zero.

    Raises:
        DataLoadError: If a column is missing or a bar is invalid.
    """
    df = _normalize_columns(df)
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise DataLoadError(f"Missing columns: {', '.join(missing)}")

    try:
        df = df.assign(**{c: pd.to_numeric(df[c], errors="raise") for c in NUMERIC_COLUMNS})
    except (ValueError, TypeError) as e:
        raise DataLoadError(f"Non-numeric price or volume: {e}") from e

    complete = df.dropna(subset=["open", "high", "low", "close"])
    if len(complete) < len(df):
        logger.info("Dropped %d rows with missing prices", len(df) - len(complete))

    try:
        df = complete.assign(
            date=pd.to_datetime(complete["date"]).dt.date,
            volume=complete["volume"].fillna(0),
        )
    except ValueError as e:
        raise DataLoadError(f"Unparseable date column: {e}") from e

    try:
        bars = [
            PriceBar(
                date=row.date,
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=float(row.volume),
            )
            for row in df.itertuples(index=False)
        ]
        return prepare_series(bars)
    except (ValidationError, PriceSeriesError) as e:
        raise DataLoadError(str(e)) from e


def net_flows_from_frame(df: pd.DataFrame) -> list[Optional[float]]:
    """Daily net foreign flows in date order; empty when the column is absent.

    Missing values are kept as None so callers can decide how to treat gaps.
    """
    df = _normalize_columns(df)
    if FLOW_COLUMN not in df.columns or "date" not in df.columns:
        return []

    try:
        ordered = df.assign(date=pd.to_datetime(df["date"])).sort_values("date")
    except ValueError as e:
        raise DataLoadError(f"Unparseable date column: {e}") from e

    return [None if pd.isna(v) else float(v) for v in ordered[FLOW_COLUMN]]


def _read_csv(path: Union[str, Path]) -> pd.DataFrame:
    csv_path = Path(path)
    if not csv_path.exists():
        raise DataLoadError(f"File not found: {csv_path}")

    try:
        return pd.read_csv(csv_path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataLoadError(f"Could not parse {csv_path}: {e}") from e


def load_bars_csv(path: Union[str, Path]) -> list[PriceBar]:
    """Read a CSV of daily bars into a price series sorted by date.

    Raises:
        DataLoadError: If the file cannot be read or holds invalid bars.
    """
    bars = bars_from_frame(_read_csv(path))
    logger.debug("Loaded %d bars from %s", len(bars), path)
    return bars


def load_net_flows_csv(path: Union[str, Path]) -> list[Optional[float]]:
    """Read the optional foreign_net column of a bar CSV, oldest first."""
    return net_flows_from_frame(_read_csv(path))


def load_bars_and_flows(path: Union[str, Path]) -> tuple[list[PriceBar], list[Optional[float]]]:
    """Read a bar CSV once, returning its price series and daily net flows.

    Raises:
        DataLoadError: If the file cannot be read or holds invalid bars.
    """
    df = _read_csv(path)
    bars = bars_from_frame(df)
    logger.debug("Loaded %d bars from %s", len(bars), path)
    return bars, net_flows_from_frame(df)
