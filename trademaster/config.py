"""TradeMaster — application configuration.

Loads .env variables into a typed config object.
Validates numeric variables on startup.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    starting_balance: float
    min_playable_candles: int
    base_tick_interval_ms: int
    random_seed: Optional[int]
    db_path: str
    log_level: str

    def tick_interval_ms(self, speed: int) -> float:
        """Return the wall-clock cadence between ticks at *speed*."""
        if speed <= 0:
            raise ValueError(f"speed must be positive, got {speed}")
        return self.base_tick_interval_ms / speed


def _read_float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _read_int(name: str, default: Optional[str]) -> Optional[int]:
    raw = os.environ.get(name, default)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` with a message naming the variable when a value
    cannot be parsed or is out of range.
    """
    load_dotenv(dotenv_path=env_path)

    starting_balance = _read_float("TRADEMASTER_STARTING_BALANCE", "10000")
    if starting_balance <= 0:
        raise ValueError(
            f"TRADEMASTER_STARTING_BALANCE must be positive, got {starting_balance}"
        )

    min_playable = _read_int("MIN_PLAYABLE_CANDLES", "60")
    if min_playable is None or min_playable < 0:
        raise ValueError(
            f"MIN_PLAYABLE_CANDLES must be zero or positive, got {min_playable}"
        )

    tick_interval = _read_int("BASE_TICK_INTERVAL_MS", "500")
    if tick_interval is None or tick_interval <= 0:
        raise ValueError(
            f"BASE_TICK_INTERVAL_MS must be positive, got {tick_interval}"
        )

    return Config(
        starting_balance=starting_balance,
        min_playable_candles=min_playable,
        base_tick_interval_ms=tick_interval,
        random_seed=_read_int("RANDOM_SEED", None),
        db_path=os.environ.get("DB_PATH", "data/trademaster.db"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )
