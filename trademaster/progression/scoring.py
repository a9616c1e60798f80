"""Progression scoring — trade XP, the level curve, and session grades.

Pure functions; the only state is the static level table.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from trademaster.session.models import CompletedTrade, Grade, SessionResult, SessionState

# ── Constants ────────────────────────────────────────────────────────────

TRADE_WIN_BASE_XP = 100
TRADE_LOSS_XP = 10
STREAK_BONUS_MULTIPLIER = 1.5
MAX_STREAK_MULTIPLIER = 5
PERFECT_TRADE_BONUS = 50
PERFECT_TRADE_THRESHOLD = 5.0  # percent
LEVERAGE_BONUS_PER_STEP = 0.1

LEVEL_XP_CONSTANT = 500
MAX_LEVEL = 100

LEVEL_TITLES: tuple[str, ...] = (
    "Rookie Trader",       # 1-9
    "Day Trader",          # 10-19
    "Swing Trader",        # 20-29
    "Pro Trader",          # 30-39
    "Market Maker",        # 40-49
    "Hedge Fund Manager",  # 50-59
    "Wall Street Legend",  # 60-69
    "Market Wizard",       # 70-79
    "Trading Titan",       # 80-89
    "Trading God",         # 90-99
    "Legendary Trader",    # 100
)

# Best to worst; first satisfied wins.
GRADE_THRESHOLDS: tuple[tuple[Grade, float, float], ...] = (
    ("S", 0.7, 50.0),
    ("A", 0.6, 30.0),
    ("B", 0.5, 15.0),
    ("C", 0.4, 0.0),
    ("D", 0.3, -15.0),
    ("F", 0.0, -100.0),
)
GRADE_ORDER: tuple[str, ...] = ("S", "A", "B", "C", "D", "F")


# ── Levels ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class LevelUnlock:
    """Something a player gains on reaching a level."""

    type: str  # "leverage", "feature" or "category"
    id: str
    name: str
    description: str = ""


@dataclass(frozen=True)
class LevelConfig:
    level: int
    xp_required: int
    title: str
    unlocks: tuple[LevelUnlock, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class LevelProgress:
    """Position of a cumulative XP total within the level curve."""

    current_level: int
    current_level_xp: int
    next_level_xp: int
    progress: float


LEVEL_UNLOCKS: dict[int, tuple[LevelUnlock, ...]] = {
    1: (LevelUnlock("leverage", "1x", "1x Leverage", "Basic trading"),),
    5: (LevelUnlock("leverage", "2x", "2x Leverage", "Double your risk/reward"),),
    10: (LevelUnlock("feature", "mystery", "Mystery Mode", "Trade unknown stocks"),),
    15: (LevelUnlock("leverage", "4x", "4x Leverage", "Quadruple exposure"),),
    20: (LevelUnlock("category", "meme", "Meme Stocks", "High volatility meme plays"),),
    25: (LevelUnlock("leverage", "10x", "10x Leverage", "Maximum risk mode"),),
    30: (LevelUnlock("feature", "leaderboard", "Leaderboard", "Compete globally"),),
    40: (LevelUnlock("category", "leveraged_etf", "Leveraged ETFs", "TQQQ, SOXL and more"),),
    50: (LevelUnlock("feature", "daily_challenge", "Daily Challenges", "Special daily missions"),),
}

_LEVERAGE_UNLOCK_LEVELS: tuple[tuple[int, int], ...] = ((1, 1), (2, 5), (4, 15), (10, 25))


def xp_for_level(level: int) -> int:
    """Cumulative XP needed to reach *level*: ``floor(C × (level-1)^1.5)``."""
    if level <= 1:
        return 0
    return math.floor(LEVEL_XP_CONSTANT * (level - 1) ** 1.5)


def level_title(level: int) -> str:
    """Title for the ten-level tier containing *level*."""
    tier = min(level // 10, len(LEVEL_TITLES) - 1)
    return LEVEL_TITLES[tier]


LEVELS: tuple[LevelConfig, ...] = tuple(
    LevelConfig(
        level=lvl,
        xp_required=xp_for_level(lvl),
        title=level_title(lvl),
        unlocks=LEVEL_UNLOCKS.get(lvl, ()),
    )
    for lvl in range(1, MAX_LEVEL + 1)
)


def level_for_xp(total_xp: float) -> int:
    """Greatest level whose requirement is covered by *total_xp*."""
    for config in reversed(LEVELS):
        if total_xp >= config.xp_required:
            return config.level
    return 1


def level_config(level: int) -> LevelConfig:
    """Level table entry for *level*, clamped to ``[1, MAX_LEVEL]``."""
    index = min(max(level, 1), MAX_LEVEL) - 1
    return LEVELS[index]


def level_progress(total_xp: float) -> LevelProgress:
    """Progress from the current level's threshold toward the next one.

    ``progress`` is 1.0 at ``MAX_LEVEL``.
    """
    current = level_for_xp(total_xp)
    current_cfg = level_config(current)
    next_cfg = level_config(current + 1)

    into_level = int(total_xp - current_cfg.xp_required)
    span = next_cfg.xp_required - current_cfg.xp_required
    if current >= MAX_LEVEL or span <= 0:
        progress = 1.0
    else:
        progress = into_level / span
    return LevelProgress(
        current_level=current,
        current_level_xp=into_level,
        next_level_xp=span,
        progress=progress,
    )


def unlocks_for_level(level: int) -> tuple[LevelUnlock, ...]:
    return LEVEL_UNLOCKS.get(level, ())


def unlocks_up_to_level(level: int) -> list[LevelUnlock]:
    """Every unlock earned on the way to *level*, in level order."""
    unlocks: list[LevelUnlock] = []
    for lvl in sorted(LEVEL_UNLOCKS):
        if lvl <= level:
            unlocks.extend(LEVEL_UNLOCKS[lvl])
    return unlocks


def is_feature_unlocked(level: int, feature_id: str) -> bool:
    return any(u.id == feature_id for u in unlocks_up_to_level(level))


def available_leverages(level: int) -> list[int]:
    """Leverage options a player of *level* may select."""
    return [lev for lev, min_level in _LEVERAGE_UNLOCK_LEVELS if level >= min_level]


# ── Trade XP ─────────────────────────────────────────────────────────────


def trade_xp(trade: CompletedTrade, streak: int) -> int:
    """XP earned for closing *trade*.

    *streak* is the win streak including this trade.  Losing and
    break-even trades earn flat participation XP.  Winners earn::

        base × min(1.5^streak, 5)  (+50 if pnl% > 5)  × (1 + (leverage-1) × 0.1)

    floored to an integer.
    """
    if trade.pnl <= 0:
        return TRADE_LOSS_XP

    xp = TRADE_WIN_BASE_XP * min(STREAK_BONUS_MULTIPLIER ** streak, MAX_STREAK_MULTIPLIER)

    if trade.pnl_percent > PERFECT_TRADE_THRESHOLD:
        xp += PERFECT_TRADE_BONUS

    if trade.leverage > 1:
        xp *= 1 + (trade.leverage - 1) * LEVERAGE_BONUS_PER_STEP

    return math.floor(xp)


# ── Grades ───────────────────────────────────────────────────────────────


def session_grade(win_rate: float, pnl_percent: float) -> Grade:
    """Letter grade for a session.

    Args:
        win_rate: Fraction of winning trades (0.0–1.0).
        pnl_percent: Session return in percent.
    """
    for grade, min_win_rate, min_pnl in GRADE_THRESHOLDS:
        if win_rate >= min_win_rate and pnl_percent >= min_pnl:
            return grade
    return "F"


def better_grade(existing: str | None, new: str) -> str:
    """The better of two letter grades (``S`` best)."""
    if existing is None or existing not in GRADE_ORDER:
        return new
    if new not in GRADE_ORDER:
        return existing
    return new if GRADE_ORDER.index(new) < GRADE_ORDER.index(existing) else existing


def session_result(state: SessionState) -> SessionResult:
    """Summarise a finished session."""
    total_trades = len(state.trades)
    win_rate = state.win_count / total_trades if total_trades else 0.0
    total_pnl = state.balance - state.starting_balance
    pnl_percent = (
        total_pnl / state.starting_balance * 100.0
        if state.starting_balance > 0 else 0.0
    )
    new_level = level_for_xp(state.xp)

    return SessionResult(
        symbol=state.symbol,
        total_trades=total_trades,
        win_rate=win_rate,
        total_pnl=total_pnl,
        pnl_percent=pnl_percent,
        max_streak=state.max_streak,
        max_drawdown=state.max_drawdown * 100.0,
        grade=session_grade(win_rate, pnl_percent),
        xp_earned=state.session_xp,
        new_level=new_level,
        level_title=level_config(new_level).title,
    )
