"""Career data models — missions, win conditions and mission results.

All types are immutable; progress bookkeeping lives in ``career.progress``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional, Union, get_args

from trademaster.session.models import SessionState

WinConditionType = Literal[
    "profit_target",
    "profit_percent",
    "survive",
    "win_streak",
    "win_rate",
    "max_drawdown",
    "beat_market",
    "trades_count",
]
RewardType = Literal[
    "xp", "unlock_leverage", "unlock_category", "unlock_feature", "title",
]
Difficulty = Literal["easy", "medium", "hard", "boss"]

WIN_CONDITION_TYPES: tuple[str, ...] = get_args(WinConditionType)


# ── Mission definitions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class WinCondition:
    """One declarative goal of a mission."""

    type: WinConditionType
    value: float
    description: str = ""

    def __post_init__(self) -> None:
        if self.type not in WIN_CONDITION_TYPES:
            raise ValueError(f"Unknown win condition type: {self.type!r}")


@dataclass(frozen=True)
class MissionReward:
    type: RewardType
    value: Union[int, str]
    label: str


@dataclass(frozen=True)
class Mission:
    id: str
    chapter: int
    order: int
    title: str
    subtitle: str
    description: str
    stock_symbol: str
    start_date: str
    end_date: str
    win_conditions: tuple[WinCondition, ...]
    rewards: tuple[MissionReward, ...] = ()
    difficulty: Difficulty = "easy"
    is_boss: bool = False
    tips: tuple[str, ...] = ()


@dataclass(frozen=True)
class Chapter:
    id: int
    title: str
    subtitle: str
    missions: tuple[Mission, ...]
    unlock_level: int = 1


# ── Evaluation inputs and outputs ────────────────────────────────────────


@dataclass(frozen=True)
class MissionSnapshot:
    """Final figures of a mission attempt.

    ``max_drawdown`` is a percentage.  ``start_price`` / ``end_price`` are
    the buy-and-hold baseline used by ``beat_market``.
    """

    total_pnl: float
    starting_balance: float
    balance: float
    win_count: int = 0
    loss_count: int = 0
    max_streak: int = 0
    current_streak: int = 0
    max_drawdown: float = 0.0
    start_price: float = 0.0
    end_price: float = 0.0

    @property
    def total_trades(self) -> int:
        return self.win_count + self.loss_count

    @property
    def win_rate(self) -> float:
        """Win percentage, 0.0 with no trades."""
        if self.total_trades == 0:
            return 0.0
        return self.win_count / self.total_trades * 100

    @property
    def pnl_percent(self) -> float:
        if self.starting_balance <= 0:
            return 0.0
        return self.total_pnl / self.starting_balance * 100

    @property
    def buy_and_hold_return(self) -> float:
        if self.start_price <= 0:
            return 0.0
        return (self.end_price - self.start_price) / self.start_price * 100

    @classmethod
    def from_state(cls, state: SessionState) -> MissionSnapshot:
        """Build a snapshot from a session, using the first candle close and
        the close at the current index as the market baseline."""
        start_price = state.candles[0].close if state.candles else 0.0
        candle = state.current_candle
        end_price = candle.close if candle is not None else start_price
        return cls(
            total_pnl=state.total_pnl,
            starting_balance=state.starting_balance,
            balance=state.balance,
            win_count=state.win_count,
            loss_count=state.loss_count,
            max_streak=state.max_streak,
            current_streak=state.current_streak,
            max_drawdown=state.max_drawdown * 100,
            start_price=start_price,
            end_price=end_price,
        )


@dataclass(frozen=True)
class WinConditionResult:
    condition: WinCondition
    passed: bool
    actual_value: float
    target_value: float


@dataclass(frozen=True)
class MissionResult:
    mission_id: str
    all_conditions_met: bool
    condition_results: tuple[WinConditionResult, ...]
    pnl: float
    pnl_percent: float
    grade: str
    score: int
    rewards: tuple[MissionReward, ...]

    @property
    def xp_reward(self) -> int:
        """Sum of the ``xp`` rewards granted."""
        return sum(int(r.value) for r in self.rewards if r.type == "xp")


# ── Progress ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MissionProgress:
    mission_id: str
    completed: bool = False
    best_score: Optional[int] = None
    best_pnl: Optional[float] = None
    best_grade: Optional[str] = None
    attempts: int = 0
    completed_at: Optional[str] = None


@dataclass(frozen=True)
class ChapterProgress:
    chapter_id: int
    missions_completed: int
    total_missions: int
    unlocked: bool


@dataclass(frozen=True)
class CareerProgress:
    current_chapter: int
    current_mission_id: str
    chapters: dict[int, ChapterProgress] = field(default_factory=dict)
    mission_scores: dict[str, MissionProgress] = field(default_factory=dict)
    completed_missions: tuple[str, ...] = ()

    @property
    def total_missions_completed(self) -> int:
        return len(self.completed_missions)
