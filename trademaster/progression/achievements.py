"""Achievement catalog and unlock evaluator.

The evaluator is pure: it takes a statistics snapshot and the set of ids
already unlocked, and returns only the achievements that qualify now and
were locked before.  Storing unlocks is the caller's job.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Literal, Optional

AchievementCategory = Literal[
    "first_steps", "trader", "streak", "profit",
    "skill", "dedication", "risk", "special",
]
AchievementRarity = Literal["common", "uncommon", "rare", "epic", "legendary"]


@dataclass(frozen=True)
class Achievement:
    """Static catalog entry.  ``hidden`` only affects display."""

    id: str
    name: str
    description: str
    category: AchievementCategory
    rarity: AchievementRarity
    xp_reward: int
    requirement: float
    hidden: bool = False


@dataclass(frozen=True)
class AchievementSnapshot:
    """Statistics an achievement predicate may look at.

    Percentages (``win_rate``, ``max_drawdown``) are on a 0–100 scale.
    Per-trade fields describe the trade that triggered the evaluation and
    stay at their defaults for end-of-session checks.
    """

    total_trades: int = 0
    total_sessions: int = 0
    session_trades: int = 0
    session_pnl: float = 0.0
    current_streak: int = 0
    max_streak: int = 0
    win_rate: float = 0.0
    max_drawdown: float = 0.0
    total_profit: float = 0.0
    daily_streak: int = 0
    leverage: int = 1
    position_duration: int = 0
    trade_pnl: float = 0.0
    is_short: bool = False
    is_mystery_mode: bool = False
    distinct_meme_symbols: int = 0
    distinct_crypto_symbols: int = 0


@dataclass(frozen=True)
class AchievementUnlock:
    """An achievement that moved from locked to unlocked."""

    achievement: Achievement
    xp_reward: int


Predicate = Callable[[AchievementSnapshot], bool]


def _a(id, name, description, category, rarity, xp_reward, requirement, hidden=False):
    return Achievement(id, name, description, category, rarity, xp_reward, requirement, hidden)


ACHIEVEMENTS: tuple[Achievement, ...] = (
    # First steps
    _a("first_trade", "First Steps", "Execute your first trade", "first_steps", "common", 50, 1),
    _a("first_profit", "In the Green", "Close your first profitable trade", "first_steps", "common", 75, 1),
    _a("first_session", "Session Complete", "Complete your first trading session", "first_steps", "common", 100, 1),
    _a("leverage_user", "Leverage Curious", "Use 2x leverage or higher", "first_steps", "common", 50, 1),
    _a("short_seller", "Short Seller", "Open your first short position", "first_steps", "common", 75, 1),
    # Trader milestones
    _a("trades_10", "Getting Started", "Complete 10 trades", "trader", "common", 100, 10),
    _a("trades_50", "Active Trader", "Complete 50 trades", "trader", "uncommon", 250, 50),
    _a("trades_100", "Experienced", "Complete 100 trades", "trader", "rare", 500, 100),
    _a("trades_500", "Veteran Trader", "Complete 500 trades", "trader", "epic", 1000, 500),
    _a("trades_1000", "Trading Legend", "Complete 1,000 trades", "trader", "legendary", 2500, 1000),
    _a("sessions_5", "Regular", "Complete 5 trading sessions", "trader", "common", 150, 5),
    _a("sessions_25", "Dedicated", "Complete 25 trading sessions", "trader", "uncommon", 400, 25),
    _a("sessions_100", "Trading Addict", "Complete 100 trading sessions", "trader", "rare", 1000, 100),
    # Streaks
    _a("streak_2", "Double Tap", "Win 2 trades in a row", "streak", "common", 50, 2),
    _a("streak_3", "Hat Trick", "Win 3 trades in a row", "streak", "common", 100, 3),
    _a("streak_5", "On Fire", "Win 5 trades in a row", "streak", "uncommon", 250, 5),
    _a("streak_7", "Hot Streak", "Win 7 trades in a row", "streak", "rare", 500, 7),
    _a("streak_10", "Unstoppable", "Win 10 trades in a row", "streak", "epic", 1000, 10),
    _a("streak_15", "Dominating", "Win 15 trades in a row", "streak", "epic", 1500, 15),
    _a("streak_20", "Legendary Streak", "Win 20 trades in a row", "streak", "legendary", 3000, 20),
    # Profit
    _a("profit_100", "First Hundred", "Make $100 profit in a single session", "profit", "common", 100, 100),
    _a("profit_500", "Five Hundred Club", "Make $500 profit in a single session", "profit", "uncommon", 300, 500),
    _a("profit_1000", "Thousand Dollar Day", "Make $1,000 profit in a single session", "profit", "rare", 750, 1000),
    _a("profit_5000", "Big Earner", "Make $5,000 profit in a single session", "profit", "epic", 2000, 5000),
    _a("profit_10000", "Whale", "Make $10,000 profit in a single session", "profit", "legendary", 5000, 10000),
    _a("total_profit_1000", "Paper Trader", "Earn $1,000 total profit", "profit", "common", 200, 1000),
    _a("total_profit_10000", "Retail Investor", "Earn $10,000 total profit", "profit", "uncommon", 500, 10000),
    _a("total_profit_50000", "Day Trader", "Earn $50,000 total profit", "profit", "rare", 1500, 50000),
    _a("total_profit_100000", "Hedge Fund Manager", "Earn $100,000 total profit", "profit", "epic", 3000, 100000),
    _a("total_profit_1000000", "Warren Buffet", "Earn $1,000,000 total profit", "profit", "legendary", 10000, 1000000),
    # Skill
    _a("no_loss_session", "Perfect Session", "Complete a session without any losses", "skill", "rare", 1000, 1),
    _a("win_rate_90", "Sharpshooter", "Achieve 90%+ win rate in a session (5+ trades)", "skill", "epic", 1500, 90),
    _a("comeback_50", "Comeback Kid", "Recover from -50% to finish positive", "skill", "rare", 1000, 1),
    _a("diamond_hands", "Diamond Hands", "Hold a position for 30+ candles", "skill", "uncommon", 300, 30),
    _a("quick_draw", "Quick Draw", "Close a profitable trade in under 3 candles", "skill", "uncommon", 200, 3),
    _a("scalper", "Scalper", "Complete 10 trades in one session", "skill", "uncommon", 300, 10),
    _a("mega_scalper", "Mega Scalper", "Complete 25 trades in one session", "skill", "rare", 750, 25),
    _a("leverage_master", "Leverage Master", "Profit $500+ with 10x leverage", "skill", "epic", 1000, 500),
    # Dedication
    _a("daily_streak_3", "Three Day Streak", "Play 3 days in a row", "dedication", "common", 150, 3),
    _a("daily_streak_7", "Week Warrior", "Play 7 days in a row", "dedication", "uncommon", 500, 7),
    _a("daily_streak_30", "Monthly Master", "Play 30 days in a row", "dedication", "epic", 2000, 30),
    _a("daily_streak_100", "Century Club", "Play 100 days in a row", "dedication", "legendary", 10000, 100),
    # Risk
    _a("survivor", "Survivor", "Recover from -30% drawdown", "risk", "uncommon", 300, 30),
    _a("risk_taker", "Risk Taker", "Use 10x leverage on a trade", "risk", "uncommon", 200, 1),
    _a("low_risk", "Conservative", "Complete a session with max 10% drawdown", "risk", "uncommon", 400, 10),
    # Special
    _a("mystery_master", "Mystery Master", "Profit $1,000+ in Mystery Mode", "special", "epic", 1500, 1000, hidden=True),
    _a("single_trade_500", "Home Run", "Make $500+ on a single trade", "special", "rare", 750, 500),
    _a("single_trade_1000", "Grand Slam", "Make $1,000+ on a single trade", "special", "epic", 2000, 1000),
    _a("meme_trader", "Meme Trader", "Trade 5 different meme stocks", "special", "uncommon", 300, 5, hidden=True),
    _a("crypto_explorer", "Crypto Explorer", "Trade 5 different crypto assets", "special", "uncommon", 300, 5, hidden=True),
)

_BY_ID: dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}


def _at_least(field: str, threshold: float) -> Predicate:
    return lambda s: getattr(s, field) >= threshold


# One predicate per catalog entry.
PREDICATES: dict[str, Predicate] = {
    "first_trade": _at_least("total_trades", 1),
    "first_profit": lambda s: s.session_pnl > 0,
    "first_session": _at_least("total_sessions", 1),
    "leverage_user": _at_least("leverage", 2),
    "short_seller": lambda s: s.is_short,
    "trades_10": _at_least("total_trades", 10),
    "trades_50": _at_least("total_trades", 50),
    "trades_100": _at_least("total_trades", 100),
    "trades_500": _at_least("total_trades", 500),
    "trades_1000": _at_least("total_trades", 1000),
    "sessions_5": _at_least("total_sessions", 5),
    "sessions_25": _at_least("total_sessions", 25),
    "sessions_100": _at_least("total_sessions", 100),
    "streak_2": _at_least("max_streak", 2),
    "streak_3": _at_least("max_streak", 3),
    "streak_5": _at_least("max_streak", 5),
    "streak_7": _at_least("max_streak", 7),
    "streak_10": _at_least("max_streak", 10),
    "streak_15": _at_least("max_streak", 15),
    "streak_20": _at_least("max_streak", 20),
    "profit_100": _at_least("session_pnl", 100),
    "profit_500": _at_least("session_pnl", 500),
    "profit_1000": _at_least("session_pnl", 1000),
    "profit_5000": _at_least("session_pnl", 5000),
    "profit_10000": _at_least("session_pnl", 10000),
    "total_profit_1000": _at_least("total_profit", 1000),
    "total_profit_10000": _at_least("total_profit", 10000),
    "total_profit_50000": _at_least("total_profit", 50000),
    "total_profit_100000": _at_least("total_profit", 100000),
    "total_profit_1000000": _at_least("total_profit", 1000000),
    "no_loss_session": lambda s: s.session_trades >= 3 and s.win_rate == 100,
    "win_rate_90": lambda s: s.session_trades >= 5 and s.win_rate >= 90,
    "comeback_50": lambda s: s.max_drawdown >= 50 and s.session_pnl > 0,
    "diamond_hands": _at_least("position_duration", 30),
    "quick_draw": lambda s: s.trade_pnl > 0 and s.position_duration <= 3,
    "scalper": _at_least("session_trades", 10),
    "mega_scalper": _at_least("session_trades", 25),
    "leverage_master": lambda s: s.leverage == 10 and s.trade_pnl >= 500,
    "daily_streak_3": _at_least("daily_streak", 3),
    "daily_streak_7": _at_least("daily_streak", 7),
    "daily_streak_30": _at_least("daily_streak", 30),
    "daily_streak_100": _at_least("daily_streak", 100),
    "survivor": lambda s: s.max_drawdown >= 30 and s.session_pnl > 0,
    "risk_taker": lambda s: s.leverage == 10,
    "low_risk": lambda s: s.session_trades >= 5 and s.max_drawdown <= 10 and s.session_pnl > 0,
    "mystery_master": lambda s: s.is_mystery_mode and s.session_pnl >= 1000,
    "single_trade_500": _at_least("trade_pnl", 500),
    "single_trade_1000": _at_least("trade_pnl", 1000),
    "meme_trader": _at_least("distinct_meme_symbols", 5),
    "crypto_explorer": _at_least("distinct_crypto_symbols", 5),
}

# Achievements that can be judged the moment a trade closes.  Everything
# else depends on how the whole session turned out and waits for its end.
TRADE_ACHIEVEMENTS: frozenset[str] = frozenset({
    "first_trade", "first_profit", "short_seller", "leverage_user", "risk_taker",
    "trades_10", "trades_50", "trades_100", "trades_500", "trades_1000",
    "streak_2", "streak_3", "streak_5", "streak_7", "streak_10", "streak_15", "streak_20",
    "diamond_hands", "quick_draw", "leverage_master",
    "single_trade_500", "single_trade_1000",
})


def evaluate_achievements(
    snapshot: AchievementSnapshot,
    unlocked: Iterable[str] = (),
    only: Optional[Iterable[str]] = None,
) -> list[AchievementUnlock]:
    """Return achievements that qualify under *snapshot* and are not in *unlocked*.

    Results follow catalog order.  Calling again with the union of
    *unlocked* and the returned ids yields an empty list.  When *only* is
    given, achievements outside it are not considered.
    """
    already = set(unlocked)
    allowed = None if only is None else set(only)
    newly: list[AchievementUnlock] = []
    for achievement in ACHIEVEMENTS:
        if achievement.id in already:
            continue
        if allowed is not None and achievement.id not in allowed:
            continue
        if PREDICATES[achievement.id](snapshot):
            newly.append(AchievementUnlock(achievement, achievement.xp_reward))
    return newly


# ── Catalog queries ──────────────────────────────────────────────────────


def get_achievement(achievement_id: str) -> Achievement:
    """Return the catalog entry with *achievement_id*.

    Raises:
        KeyError: If no achievement has that id.
    """
    try:
        return _BY_ID[achievement_id]
    except KeyError:
        raise KeyError(
            f"Unknown achievement '{achievement_id}'. Available: {sorted(_BY_ID)}"
        ) from None


def achievements_by_category(category: AchievementCategory) -> list[Achievement]:
    return [a for a in ACHIEVEMENTS if a.category == category]


def visible_achievements(unlocked: Iterable[str] = ()) -> list[Achievement]:
    """Catalog entries a player can see: every non-hidden one plus unlocked hidden ones."""
    already = set(unlocked)
    return [a for a in ACHIEVEMENTS if not a.hidden or a.id in already]


def completion_percentage(unlocked: Iterable[str]) -> int:
    """Unlocked share of the non-hidden catalog, rounded to a whole percent."""
    total = sum(1 for a in ACHIEVEMENTS if not a.hidden)
    count = sum(1 for achievement_id in set(unlocked) if achievement_id in _BY_ID)
    return round(count / total * 100)


def total_achievement_xp(unlocked: Iterable[str]) -> int:
    already = set(unlocked)
    return sum(a.xp_reward for a in ACHIEVEMENTS if a.id in already)
