"""Market data models — the candle series a session replays."""

import math
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class Candle:
    """A single candlestick bar.

    ``time`` is a unix timestamp in seconds.
    """

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: Optional[int] = None


def validate_series(candles: Iterable[Candle]) -> tuple[Candle, ...]:
    """Check a candle series and return it as a tuple.

    Raises:
        ValueError: If the series is empty, a price is missing, non-finite
            or negative, a volume is negative, or times are not strictly
            increasing.
    """
    series = tuple(candles)
    if not series:
        raise ValueError("candle series must not be empty")

    previous_time: Optional[int] = None
    for i, candle in enumerate(series):
        for name in ("open", "high", "low", "close"):
            value = getattr(candle, name)
            if value is None:
                raise ValueError(f"candle {i} has no {name} price")
            if not math.isfinite(value) or value < 0:
                raise ValueError(
                    f"candle {i} {name} must be finite and >= 0, got {value}"
                )
        if candle.volume is not None and candle.volume < 0:
            raise ValueError(
                f"candle {i} volume must be >= 0, got {candle.volume}"
            )
        if previous_time is not None and candle.time <= previous_time:
            raise ValueError(
                f"candle times must be strictly increasing "
                f"(candle {i}: {candle.time} <= {previous_time})"
            )
        previous_time = candle.time

    return series


# ── Symbol metadata ──────────────────────────────────────────────────────

SYMBOL_CATEGORIES: dict[str, str] = {
    "GME": "meme",
    "AMC": "meme",
    "BBBY": "meme",
    "BB": "meme",
    "PLTR": "meme",
    "BTC-USD": "crypto",
    "ETH-USD": "crypto",
    "DOGE-USD": "crypto",
    "SOL-USD": "crypto",
    "XRP-USD": "crypto",
    "COIN": "crypto",
    "MARA": "crypto",
    "RIOT": "crypto",
}


def symbols_in_category(symbols: Iterable[str], category: str) -> set[str]:
    """Distinct *symbols* that belong to *category*."""
    return {s for s in symbols if SYMBOL_CATEGORIES.get(s.upper()) == category}
