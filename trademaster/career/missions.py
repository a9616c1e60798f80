"""Career mission catalog — three chapters of historical trading days.

Missions are looked up by id; the order within ``CHAPTERS`` is the
campaign order used by ``next_mission``.
"""

from __future__ import annotations

from typing import Optional

from trademaster.career.models import Chapter, Mission, MissionReward, WinCondition


def _xp(amount: int) -> MissionReward:
    return MissionReward("xp", amount, f"+{amount:,} XP")


def _title(name: str) -> MissionReward:
    return MissionReward("title", name, f"Title: {name}")


_SURVIVE = WinCondition("survive", 1, "Don't get liquidated")


# ── Chapter 1: The Basics ────────────────────────────────────────────────

_CHAPTER_1 = (
    Mission(
        id="c1m1-first-trade",
        chapter=1,
        order=1,
        title="Your First Trade",
        subtitle="Every journey begins with a single step",
        description="Open a position on a calm Apple session and close it in profit.",
        stock_symbol="AAPL",
        start_date="2024-09-09",
        end_date="2024-09-09",
        win_conditions=(WinCondition("profit_target", 50, "Make $50 profit"),),
        rewards=(_xp(100),),
        difficulty="easy",
        tips=("Buy when you expect the price to rise", "Start small"),
    ),
    Mission(
        id="c1m2-cut-losses",
        chapter=1,
        order=2,
        title="Learning to Cut Losses",
        subtitle="The most important skill in trading",
        description="A choppy Microsoft session punishes anyone holding losers.",
        stock_symbol="MSFT",
        start_date="2024-01-15",
        end_date="2024-01-15",
        win_conditions=(
            WinCondition("max_drawdown", 5, "Keep drawdown under 5%"),
            WinCondition("trades_count", 3, "Complete at least 3 trades"),
        ),
        rewards=(_xp(150), _title("Loss Cutter")),
        difficulty="easy",
    ),
    Mission(
        id="c1m3-riding-winners",
        chapter=1,
        order=3,
        title="Riding Winners",
        subtitle="Let your profits run",
        description="NVIDIA trends hard all day; hold the winners.",
        stock_symbol="NVDA",
        start_date="2024-02-22",
        end_date="2024-02-22",
        win_conditions=(
            WinCondition("profit_target", 500, "Make $500 profit"),
            WinCondition("win_rate", 50, "Maintain 50%+ win rate"),
        ),
        rewards=(_xp(200), MissionReward("unlock_leverage", 2, "Unlock 2x Leverage")),
        difficulty="medium",
    ),
    Mission(
        id="c1m4-position-sizing",
        chapter=1,
        order=4,
        title="Position Sizing",
        subtitle="Risk management is everything",
        description="Tesla swings both ways; size positions so one move cannot end you.",
        stock_symbol="TSLA",
        start_date="2024-07-10",
        end_date="2024-07-10",
        win_conditions=(
            _SURVIVE,
            WinCondition("profit_percent", 5, "End with 5%+ portfolio gain"),
        ),
        rewards=(_xp(250),),
        difficulty="medium",
    ),
    Mission(
        id="c1m5-boss-flash-crash",
        chapter=1,
        order=5,
        title="Survive the Flash Crash",
        subtitle="BOSS BATTLE",
        description="The 2010 flash crash wiped out a trillion dollars in minutes.",
        stock_symbol="SPY",
        start_date="2010-05-06",
        end_date="2010-05-06",
        win_conditions=(
            _SURVIVE,
            WinCondition("profit_target", 0, "End in profit (any amount)"),
        ),
        rewards=(
            _xp(500),
            _title("Flash Crash Survivor"),
            MissionReward("unlock_category", "leveraged", "Unlock Leveraged ETFs"),
        ),
        difficulty="boss",
        is_boss=True,
    ),
)


# ── Chapter 2: Market Dynamics ───────────────────────────────────────────

_CHAPTER_2 = (
    Mission(
        id="c2m1-trend-following",
        chapter=2,
        order=1,
        title="Riding the Tesla Wave",
        subtitle="The trend is your friend",
        description="Trade with the trend on Tesla's stock-split announcement day.",
        stock_symbol="TSLA",
        start_date="2020-08-11",
        end_date="2020-08-11",
        win_conditions=(
            WinCondition("profit_percent", 10, "Make 10%+ return"),
            WinCondition("beat_market", 1, "Beat buy-and-hold strategy"),
        ),
        rewards=(_xp(300), MissionReward("unlock_leverage", 4, "Unlock 4x Leverage")),
        difficulty="medium",
    ),
    Mission(
        id="c2m2-gme-squeeze",
        chapter=2,
        order=2,
        title="The GameStop Squeeze",
        subtitle="When memes move markets",
        description="Retail traders squeeze the shorts at the height of the frenzy.",
        stock_symbol="GME",
        start_date="2021-01-27",
        end_date="2021-01-27",
        win_conditions=(
            WinCondition("profit_target", 1000, "Make $1,000 profit"),
            _SURVIVE,
        ),
        rewards=(
            _xp(400),
            _title("Diamond Hands"),
            MissionReward("unlock_category", "meme", "Unlock Meme Stocks"),
        ),
        difficulty="hard",
    ),
    Mission(
        id="c2m3-earnings-play",
        chapter=2,
        order=3,
        title="The Earnings Beat",
        subtitle="When numbers exceed expectations",
        description="NVIDIA reacts to blowout earnings.",
        stock_symbol="NVDA",
        start_date="2024-02-21",
        end_date="2024-02-21",
        win_conditions=(
            WinCondition("profit_percent", 8, "Make 8%+ return"),
            WinCondition("trades_count", 5, "Complete at least 5 trades"),
        ),
        rewards=(_xp(350),),
        difficulty="medium",
    ),
    Mission(
        id="c2m4-fed-day",
        chapter=2,
        order=4,
        title="Fed Rate Decision",
        subtitle="When the Fed speaks, markets listen",
        description="The index whipsaws around the rate announcement.",
        stock_symbol="SPY",
        start_date="2024-01-31",
        end_date="2024-01-31",
        win_conditions=(
            WinCondition("profit_target", 300, "Make $300 profit"),
            WinCondition("max_drawdown", 10, "Keep drawdown under 10%"),
        ),
        rewards=(_xp(350), _title("Fed Whisperer")),
        difficulty="hard",
    ),
    Mission(
        id="c2m5-boss-covid-crash",
        chapter=2,
        order=5,
        title="The COVID Crash",
        subtitle="BOSS BATTLE",
        description="Circuit breakers trip as the pandemic sell-off accelerates.",
        stock_symbol="SPY",
        start_date="2020-03-16",
        end_date="2020-03-16",
        win_conditions=(
            _SURVIVE,
            WinCondition("profit_target", 500, "Make $500 profit"),
        ),
        rewards=(
            _xp(600),
            _title("Pandemic Trader"),
            MissionReward("unlock_leverage", 10, "Unlock 10x Leverage"),
        ),
        difficulty="boss",
        is_boss=True,
    ),
)


# ── Chapter 3: Advanced Strategies ───────────────────────────────────────

_CHAPTER_3 = (
    Mission(
        id="c3m1-crypto-volatility",
        chapter=3,
        order=1,
        title="Bitcoin's All-Time High",
        subtitle="Digital gold goes parabolic",
        description="Bitcoin runs to a new record high.",
        stock_symbol="BTC-USD",
        start_date="2024-03-14",
        end_date="2024-03-14",
        win_conditions=(
            WinCondition("profit_percent", 15, "Make 15%+ return"),
            WinCondition("win_streak", 3, "Win 3 trades in a row"),
        ),
        rewards=(_xp(400), MissionReward("unlock_category", "crypto", "Unlock Crypto Trading")),
        difficulty="hard",
    ),
    Mission(
        id="c3m2-leveraged-etf",
        chapter=3,
        order=2,
        title="Triple Leverage",
        subtitle="3x the risk, 3x the reward",
        description="A triple-leveraged Nasdaq fund amplifies every tick.",
        stock_symbol="TQQQ",
        start_date="2024-04-15",
        end_date="2024-04-15",
        win_conditions=(
            WinCondition("profit_target", 800, "Make $800 profit"),
            WinCondition("max_drawdown", 15, "Keep drawdown under 15%"),
        ),
        rewards=(_xp(450), _title("Leverage Master")),
        difficulty="hard",
    ),
    Mission(
        id="c3m3-reversal-trading",
        chapter=3,
        order=3,
        title="Catching the Knife",
        subtitle="Buying the dip - the hard way",
        description="Meta collapses after earnings; find where the selling exhausts.",
        stock_symbol="META",
        start_date="2022-10-26",
        end_date="2022-10-26",
        win_conditions=(
            WinCondition("profit_percent", 12, "Make 12%+ return"),
            WinCondition("trades_count", 4, "Complete at least 4 trades"),
        ),
        rewards=(_xp(450), _title("Knife Catcher")),
        difficulty="hard",
    ),
    Mission(
        id="c3m4-range-trading",
        chapter=3,
        order=4,
        title="The Chop Zone",
        subtitle="When markets go sideways",
        description="Amazon goes nowhere; trade the range between support and resistance.",
        stock_symbol="AMZN",
        start_date="2024-06-10",
        end_date="2024-06-10",
        win_conditions=(
            WinCondition("win_rate", 70, "Maintain 70%+ win rate"),
            WinCondition("trades_count", 6, "Complete at least 6 trades"),
        ),
        rewards=(_xp(400),),
        difficulty="hard",
    ),
    Mission(
        id="c3m5-boss-bear-market",
        chapter=3,
        order=5,
        title="The 2022 Bear Market",
        subtitle="FINAL BOSS",
        description="The Nasdaq grinds lower; profit with shorts and careful sizing.",
        stock_symbol="QQQ",
        start_date="2022-06-13",
        end_date="2022-06-13",
        win_conditions=(
            _SURVIVE,
            WinCondition("profit_target", 1000, "Make $1,000 profit"),
            WinCondition("beat_market", 1, "Beat buy-and-hold"),
        ),
        rewards=(
            _xp(1000),
            _title("Bear Market Master"),
            MissionReward("unlock_feature", "pro_stats", "Unlock Pro Statistics"),
        ),
        difficulty="boss",
        is_boss=True,
    ),
)

CHAPTERS: tuple[Chapter, ...] = (
    Chapter(1, "The Basics", "Learn to Trade", _CHAPTER_1, unlock_level=1),
    Chapter(2, "Market Dynamics", "Read the Market", _CHAPTER_2, unlock_level=10),
    Chapter(3, "Advanced Strategies", "Master the Game", _CHAPTER_3, unlock_level=20),
)

_MISSIONS: dict[str, Mission] = {
    m.id: m for chapter in CHAPTERS for m in chapter.missions
}
_CAMPAIGN: tuple[str, ...] = tuple(_MISSIONS)


# ── Public API ───────────────────────────────────────────────────────────


def get_mission(mission_id: str) -> Mission:
    """Return the mission with *mission_id*.

    Raises:
        KeyError: If no mission has that id.
    """
    try:
        return _MISSIONS[mission_id]
    except KeyError:
        raise KeyError(
            f"Unknown mission '{mission_id}'. Available: {sorted(_MISSIONS)}"
        ) from None


def get_chapter(chapter_id: int) -> Optional[Chapter]:
    for chapter in CHAPTERS:
        if chapter.id == chapter_id:
            return chapter
    return None


def next_mission(mission_id: str) -> Optional[Mission]:
    """Mission following *mission_id* in campaign order, crossing chapters."""
    index = _CAMPAIGN.index(get_mission(mission_id).id)
    if index + 1 < len(_CAMPAIGN):
        return _MISSIONS[_CAMPAIGN[index + 1]]
    return None


def total_missions() -> int:
    return len(_MISSIONS)
