"""Session data models — positions, closed trades and the session aggregate."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal, Optional

from trademaster.market.models import Candle

Side = Literal["long", "short"]
SessionStatus = Literal["idle", "playing", "paused", "ended"]
Grade = Literal["S", "A", "B", "C", "D", "F"]

SPEED_OPTIONS: tuple[int, ...] = (1, 2, 4)
DEFAULT_STARTING_BALANCE = 10_000.0


@dataclass(frozen=True)
class Position:
    """The single open position of a session."""

    side: Side
    entry_price: float
    quantity: float
    leverage: int
    entry_index: int
    entry_time: int


@dataclass(frozen=True)
class CompletedTrade:
    """A closed position.  Never mutated once appended to the history."""

    id: str
    side: Side
    entry_price: float
    exit_price: float
    quantity: float
    leverage: int
    pnl: float
    pnl_percent: float
    entry_time: int
    exit_time: int
    entry_index: int = 0
    exit_index: int = 0

    @property
    def duration(self) -> int:
        """Number of candles the position was held."""
        return self.exit_index - self.entry_index


@dataclass
class SessionState:
    """Mutable session aggregate owned by one ``SessionEngine``.

    ``max_drawdown`` is a fraction (0.25 = 25 %); ``xp`` is the player's
    cumulative XP including this session, ``session_xp`` only this
    session's share.
    """

    symbol: str = ""
    candles: tuple[Candle, ...] = ()
    mystery_mode: bool = False
    candle_index: int = 0

    balance: float = DEFAULT_STARTING_BALANCE
    starting_balance: float = DEFAULT_STARTING_BALANCE
    position: Optional[Position] = None
    trades: list[CompletedTrade] = field(default_factory=list)
    open_pnl: float = 0.0

    is_playing: bool = False
    speed_multiplier: int = 1
    leverage: int = 1
    status: SessionStatus = "idle"

    total_pnl: float = 0.0
    win_count: int = 0
    loss_count: int = 0
    current_streak: int = 0
    max_streak: int = 0
    max_drawdown: float = 0.0
    peak_balance: float = DEFAULT_STARTING_BALANCE

    level: int = 1
    xp: int = 0
    session_xp: int = 0

    # ── Derived values ───────────────────────────────────────────────────

    @property
    def current_candle(self) -> Optional[Candle]:
        """Candle at ``candle_index``, or ``None`` when no data is loaded."""
        if 0 <= self.candle_index < len(self.candles):
            return self.candles[self.candle_index]
        return None

    @property
    def equity(self) -> float:
        """Balance plus unrealised P&L."""
        return self.balance + self.open_pnl

    @property
    def total_trades(self) -> int:
        return len(self.trades)

    @property
    def win_rate(self) -> float:
        """Fraction of closed trades that were winners (0.0 with no trades)."""
        if not self.trades:
            return 0.0
        return self.win_count / len(self.trades)

    def snapshot(self) -> SessionState:
        """Return an independent copy safe to hand to collaborators."""
        return replace(self, trades=list(self.trades))


@dataclass(frozen=True)
class SessionResult:
    """Terminal summary emitted when a session ends."""

    symbol: str
    total_trades: int
    win_rate: float
    total_pnl: float
    pnl_percent: float
    max_streak: int
    max_drawdown: float  # percentage
    grade: Grade
    xp_earned: int
    new_level: int
    level_title: str
