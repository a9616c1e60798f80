"""Session actions and events.

Each player or driver input is its own frozen dataclass so the engine can
dispatch on type instead of probing optional payload fields.  Events are
pushed to subscribers after the state change that produced them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from trademaster.market.models import Candle
from trademaster.session.models import CompletedTrade, SessionResult, SessionState


# ── Actions ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class LoadData:
    """Replace the price series and return the session to ``idle``."""

    symbol: str
    candles: Sequence[Candle]
    mystery_mode: bool = False


@dataclass(frozen=True)
class StartGame:
    """Start playing from *start_index* (random when ``None``)."""

    start_index: Optional[int] = None


@dataclass(frozen=True)
class Tick:
    """Advance one candle."""


@dataclass(frozen=True)
class Buy:
    """Open a long, or close an open short."""


@dataclass(frozen=True)
class Sell:
    """Open a short, or close an open long."""


@dataclass(frozen=True)
class ClosePosition:
    """Close the whole open position."""


@dataclass(frozen=True)
class SellHalf:
    """Close half of the open position, keeping the rest open."""


@dataclass(frozen=True)
class SetLeverage:
    leverage: int


@dataclass(frozen=True)
class SetSpeed:
    speed: int


@dataclass(frozen=True)
class TogglePlay:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class EndGame:
    """Close any open position and end the session."""


@dataclass(frozen=True)
class Reset:
    """Drop the price series and return to ``idle``, keeping XP."""


Action = Union[
    LoadData, StartGame, Tick, Buy, Sell, ClosePosition, SellHalf,
    SetLeverage, SetSpeed, TogglePlay, Pause, Resume, EndGame, Reset,
]


# ── Events ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TradeClosed:
    """A position (or half of one) was closed.

    ``liquidated`` is set when the close was forced by the engine.
    """

    trade: CompletedTrade
    xp_earned: int
    state: SessionState
    liquidated: bool = False


@dataclass(frozen=True)
class SessionEnded:
    """The session reached ``ended``."""

    result: SessionResult
    state: SessionState


Event = Union[TradeClosed, SessionEnded]
