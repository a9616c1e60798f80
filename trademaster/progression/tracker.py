"""Progress tracker — applies session events to a ``ProgressStore``.

Subscribes to a ``SessionEngine``.  Each closed trade is checked against
the trade-scoped achievements; each finished session is recorded, credited
with its XP and checked against the whole catalog.  Unlocks and XP are
persisted immediately.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Optional

from trademaster.progression.achievements import (
    TRADE_ACHIEVEMENTS,
    AchievementSnapshot,
    AchievementUnlock,
    evaluate_achievements,
)
from trademaster.progression.scoring import level_for_xp, level_title
from trademaster.repos.progress_repo import (
    RECENT_SESSIONS_LIMIT,
    ProgressStore,
    SavedProgress,
    SessionRecord,
)
from trademaster.session.actions import Event, SessionEnded, TradeClosed
from trademaster.session.engine import SessionEngine
from trademaster.session.models import SessionResult
from trademaster.session.stats import session_snapshot, trade_snapshot

logger = logging.getLogger("trademaster.progress")

MYSTERY_SYMBOL = "MYSTERY"


class ProgressTracker:
    """Keeps a ``ProgressStore`` in step with a running session.

    Args:
        store: Where progress is loaded from and saved to.
        today: Date used for daily-streak and session records.  Defaults
               to ``date.today()`` at call time.
    """

    def __init__(self, store: ProgressStore, today: Optional[date] = None) -> None:
        self._store = store
        self._today = today
        self._pending: list[AchievementUnlock] = []
        self._last_session: list[AchievementUnlock] = []
        self._last_result: Optional[SessionResult] = None

    # ── Wiring ───────────────────────────────────────────────────────────

    @property
    def progress(self) -> SavedProgress:
        return self._store.load()

    @property
    def new_unlocks(self) -> list[AchievementUnlock]:
        """Achievements unlocked during the most recently finished session."""
        return list(self._last_session)

    @property
    def last_result(self) -> Optional[SessionResult]:
        """Result of the most recently finished session, levelled from the store.

        The engine's own ``SessionResult`` only knows trade XP; this copy
        carries the stored level, which also counts achievement rewards.
        """
        return self._last_result

    def create_engine(self, **kwargs) -> SessionEngine:
        """Build a ``SessionEngine`` seeded with stored XP and subscribed to this tracker."""
        engine = SessionEngine(xp=self._store.load().xp, **kwargs)
        self.attach(engine)
        return engine

    def attach(self, engine: SessionEngine) -> None:
        engine.subscribe(self.handle)

    def handle(self, event: Event) -> None:
        """Route an engine event."""
        if isinstance(event, TradeClosed):
            self.on_trade_closed(event)
        elif isinstance(event, SessionEnded):
            self.on_session_ended(event)
        else:
            raise TypeError(f"unknown session event: {event!r}")

    # ── Event handlers ───────────────────────────────────────────────────

    def on_trade_closed(self, event: TradeClosed) -> list[AchievementUnlock]:
        """Check the trade-scoped achievements against the trade just closed."""
        progress = self._store.load()
        snapshot = trade_snapshot(event.state, event.trade, progress)
        return self._unlock(snapshot, progress, only=TRADE_ACHIEVEMENTS)

    def on_session_ended(self, event: SessionEnded) -> list[AchievementUnlock]:
        """Record the session, add its XP and check session achievements.

        Sessions without trades are not recorded, matching how the game
        only counts sessions the player actually traded in.
        """
        state = event.state
        result = event.result
        if not state.trades:
            self._finish_session(result)
            return []

        progress = self._store.load()
        symbol = MYSTERY_SYMBOL if state.mystery_mode else state.symbol
        record = SessionRecord(
            date=self._date().isoformat(),
            symbol=symbol,
            pnl=result.total_pnl,
            trades=result.total_trades,
            win_rate=result.win_rate * 100.0,
            max_streak=result.max_streak,
            grade=result.grade,
            xp_earned=result.xp_earned,
        )

        symbols = list(progress.traded_symbols)
        if not state.mystery_mode and state.symbol and state.symbol not in symbols:
            symbols.append(state.symbol)

        xp = progress.xp + result.xp_earned
        progress = self._store.save(
            recent_sessions=((record,) + progress.recent_sessions)[:RECENT_SESSIONS_LIMIT],
            total_sessions=progress.total_sessions + 1,
            total_profit=progress.total_profit + result.total_pnl,
            total_trades=progress.total_trades + result.total_trades,
            total_wins=progress.total_wins + state.win_count,
            total_losses=progress.total_losses + state.loss_count,
            best_session_pnl=max(progress.best_session_pnl, result.total_pnl),
            worst_session_pnl=min(progress.worst_session_pnl, result.total_pnl),
            best_streak=max(progress.best_streak, result.max_streak),
            longest_session=max(progress.longest_session, result.total_trades),
            traded_symbols=tuple(symbols),
            xp=xp,
            level=level_for_xp(xp),
        )
        logger.info(
            "Recorded session on %s: $%.2f, grade %s, +%d XP (total %d)",
            symbol, result.total_pnl, result.grade, result.xp_earned, progress.xp,
        )

        unlocks = self._unlock(session_snapshot(state, progress), progress)
        self._finish_session(result, recorded=True)
        return unlocks

    def check_daily_streak(self) -> tuple[int, bool]:
        """Update the consecutive-day counter.

        Returns ``(streak, is_new_day)``.  Playing again on the same day
        leaves the streak unchanged; skipping a day restarts it at 1.
        """
        progress = self._store.load()
        today = self._date()
        if progress.last_play_date == today.isoformat():
            return progress.daily_streak, False

        yesterday = (today - timedelta(days=1)).isoformat()
        if progress.last_play_date == yesterday:
            streak = progress.daily_streak + 1
        else:
            streak = 1

        self._store.save(daily_streak=streak, last_play_date=today.isoformat())
        if streak > 1:
            logger.info("Daily streak: %d days", streak)
        return streak, True

    # ── Helpers ──────────────────────────────────────────────────────────

    def _finish_session(self, result: SessionResult, recorded: bool = False) -> None:
        if recorded:
            level = self._store.load().level
            result = replace(result, new_level=level, level_title=level_title(level))
        self._last_result = result
        self._last_session = self._pending
        self._pending = []

    def _date(self) -> date:
        return self._today or date.today()

    def _unlock(
        self,
        snapshot: AchievementSnapshot,
        progress: SavedProgress,
        only: Optional[frozenset[str]] = None,
    ) -> list[AchievementUnlock]:
        unlocks = evaluate_achievements(snapshot, progress.achievements, only=only)
        if not unlocks:
            return []

        reward = sum(u.xp_reward for u in unlocks)
        xp = progress.xp + reward
        achievement_progress = dict(progress.achievement_progress)
        for key in ("trades_10", "trades_50", "trades_100"):
            achievement_progress[key] = snapshot.total_trades

        self._store.save(
            achievements=progress.achievements + tuple(u.achievement.id for u in unlocks),
            achievement_progress=achievement_progress,
            xp=xp,
            level=level_for_xp(xp),
        )
        for u in unlocks:
            logger.info(
                "Achievement unlocked: %s (+%d XP)", u.achievement.name, u.xp_reward,
            )
        self._pending.extend(unlocks)
        return unlocks
