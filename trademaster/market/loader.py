"""Candle file loading for the replay CLI.

Reads CSV (via pandas) or JSON candle files, drops rows with missing
prices, and returns a validated series.  Session code never touches files;
this is the upstream filter that hands clean candles to the engine.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pandas as pd

from trademaster.market.models import Candle, validate_series

logger = logging.getLogger("trademaster.market")

_PRICE_COLUMNS = ["open", "high", "low", "close"]


def _to_unix_seconds(column: pd.Series) -> pd.Series:
    """Convert a time column (epoch seconds or date strings) to int seconds."""
    if pd.api.types.is_numeric_dtype(column):
        return column.astype("int64")
    stamps = pd.to_datetime(column, utc=True)
    return (stamps - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(seconds=1)


def candles_from_frame(df: pd.DataFrame) -> tuple[Candle, ...]:
    """Build a validated candle series from a DataFrame.

    The frame must have ``time, open, high, low, close`` columns and may
    have ``volume``.  Rows with any missing price are dropped.
    """
    df = df.rename(columns={c: c.strip().lower() for c in df.columns})
    missing = [c for c in ["time", *_PRICE_COLUMNS] if c not in df.columns]
    if missing:
        raise ValueError(f"candle data is missing column(s): {', '.join(missing)}")

    for col in _PRICE_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    before = len(df)
    df = df.dropna(subset=["time", *_PRICE_COLUMNS]).copy()
    dropped = before - len(df)
    if dropped:
        logger.info("Dropped %d candle row(s) with missing prices", dropped)

    df["time"] = _to_unix_seconds(df["time"])
    has_volume = "volume" in df.columns

    candles = []
    for row in df.itertuples(index=False):
        volume = None
        if has_volume and not pd.isna(row.volume):
            volume = int(row.volume)
        candles.append(
            Candle(
                time=int(row.time),
                open=float(row.open),
                high=float(row.high),
                low=float(row.low),
                close=float(row.close),
                volume=volume,
            )
        )
    return validate_series(candles)


def load_candles_csv(path: str | Path) -> tuple[Candle, ...]:
    """Load candles from a CSV file."""
    return candles_from_frame(pd.read_csv(path))


def load_candles_json(path: str | Path) -> tuple[Candle, ...]:
    """Load candles from a JSON file.

    Accepts either a list of candle objects or a column dict with a
    ``timestamp`` (or ``time``) array alongside ``open/high/low/close``
    arrays, the shape quote APIs return.
    """
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = dict(payload)
        if "timestamp" in payload and "time" not in payload:
            payload["time"] = payload.pop("timestamp")
    return candles_from_frame(pd.DataFrame(payload))


def load_candles(path: str | Path) -> tuple[Candle, ...]:
    """Load candles, picking the parser from the file extension."""
    suffix = Path(path).suffix.lower()
    if suffix == ".json":
        return load_candles_json(path)
    if suffix == ".csv":
        return load_candles_csv(path)
    raise ValueError(f"unsupported candle file type: {suffix or path}")
