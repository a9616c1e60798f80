"""Tests for the progress tracker — session recording, XP and unlocks."""

from datetime import date

import pytest

from trademaster.market.models import Candle
from trademaster.progression.tracker import ProgressTracker
from trademaster.repos.progress_repo import InMemoryProgressStore, SavedProgress, SqliteProgressStore

TODAY = date(2026, 3, 10)


# ── Helpers ──────────────────────────────────────────────────────────────


def _make_candles(prices):
    return [Candle(time=i * 60, open=p, high=p, low=p, close=p) for i, p in enumerate(prices)]


def _play_one_win(tracker, symbol="TEST", mystery=False):
    """Buy at 100, sell at 100.5 ($50 on $10,000), then end."""
    engine = tracker.create_engine()
    engine.load(symbol, _make_candles([100, 100.5, 101]), mystery_mode=mystery)
    engine.start(0)
    engine.buy()
    engine.tick()
    engine.close()
    engine.end()
    return engine


def _ids(unlocks):
    return [u.achievement.id for u in unlocks]


# ── Session recording ────────────────────────────────────────────────────


class TestSessionRecording:
    """Session events applied to a progress store."""

    def test_records_session_and_xp(self):
        """One +$50 win → session recorded with 150 trade XP and grade C."""
        store = InMemoryProgressStore()
        tracker = ProgressTracker(store, today=TODAY)
        _play_one_win(tracker)

        progress = store.load()
        assert progress.total_sessions == 1
        assert progress.total_trades == 1
        assert progress.total_wins == 1
        assert progress.total_profit == pytest.approx(50.0)
        assert progress.best_session_pnl == pytest.approx(50.0)
        assert progress.traded_symbols == ("TEST",)

        record = progress.recent_sessions[0]
        assert record.date == "2026-03-10"
        assert record.symbol == "TEST"
        assert record.win_rate == pytest.approx(100.0)
        assert record.grade == "C"
        assert record.xp_earned == 150

    def test_unlocks_and_rewards(self):
        """First win unlocks four achievements; their XP lifts the player to level 2."""
        store = InMemoryProgressStore()
        tracker = ProgressTracker(store, today=TODAY)
        _play_one_win(tracker)

        assert _ids(tracker.new_unlocks) == [
            "first_trade", "first_profit", "quick_draw", "first_session",
        ]
        progress = store.load()
        assert set(progress.achievements) == set(_ids(tracker.new_unlocks))
        # 150 trade XP + 50 + 75 + 200 + 100 achievement XP
        assert progress.xp == 575
        assert progress.level == 2

    def test_session_without_trades_not_recorded(self):
        """A session with no trades leaves the store untouched."""
        store = InMemoryProgressStore()
        tracker = ProgressTracker(store, today=TODAY)
        engine = tracker.create_engine()
        engine.load("TEST", _make_candles([1, 2]))
        engine.start(0)
        engine.end()
        assert store.load().total_sessions == 0
        assert tracker.new_unlocks == []

    def test_mystery_mode_hides_symbol(self):
        """Mystery Mode records the session under MYSTERY."""
        store = InMemoryProgressStore()
        tracker = ProgressTracker(store, today=TODAY)
        _play_one_win(tracker, symbol="GME", mystery=True)
        progress = store.load()
        assert progress.recent_sessions[0].symbol == "MYSTERY"
        assert progress.traded_symbols == ()

    def test_next_engine_starts_from_stored_xp(self):
        store = InMemoryProgressStore()
        tracker = ProgressTracker(store, today=TODAY)
        _play_one_win(tracker)
        engine = tracker.create_engine()
        assert engine.state.xp == store.load().xp

    def test_second_session_does_not_repeat_unlocks(self):
        store = InMemoryProgressStore()
        tracker = ProgressTracker(store, today=TODAY)
        _play_one_win(tracker)
        _play_one_win(tracker)
        assert "first_trade" not in _ids(tracker.new_unlocks)
        assert store.load().total_sessions == 2
        assert len(store.load().recent_sessions) == 2

    def test_perfect_session_not_awarded_when_later_trades_lose(self):
        """Three wins then two losses → streak unlocks, Perfect Session stays locked."""
        store = InMemoryProgressStore()
        tracker = ProgressTracker(store, today=TODAY)
        engine = tracker.create_engine()
        engine.load("TEST", _make_candles([100, 101, 102, 103, 102, 101]))
        engine.start(0)
        for _ in range(5):
            engine.buy()
            engine.tick()
            engine.close()
        engine.end()

        assert engine.state.win_count == 3
        assert engine.state.loss_count == 2
        unlocked = store.load().achievements
        assert "streak_3" in unlocked
        assert "no_loss_session" not in unlocked

    def test_perfect_session_awarded_at_session_end(self):
        """Three wins and no losses → Perfect Session unlocked when the session ends."""
        store = InMemoryProgressStore()
        tracker = ProgressTracker(store, today=TODAY)
        engine = tracker.create_engine()
        engine.load("TEST", _make_candles([100, 101, 102, 103]))
        engine.start(0)
        for _ in range(3):
            engine.buy()
            engine.tick()
            engine.close()
            assert "no_loss_session" not in store.load().achievements
        engine.end()
        assert "no_loss_session" in store.load().achievements

    def test_last_result_counts_achievement_xp(self):
        """150 trade XP alone is level 1; with 425 achievement XP the stored level is 2."""
        store = InMemoryProgressStore()
        tracker = ProgressTracker(store, today=TODAY)
        results = []
        engine = tracker.create_engine()
        engine.subscribe(lambda event: results.append(getattr(event, "result", None)))
        engine.load("TEST", _make_candles([100, 100.5, 101]))
        engine.start(0)
        engine.buy()
        engine.tick()
        engine.close()
        engine.end()

        assert results[-1].new_level == 1
        assert tracker.last_result.new_level == 2
        assert tracker.last_result.level_title == "Rookie Trader"
        assert tracker.last_result.xp_earned == results[-1].xp_earned

    def test_unknown_event_raises(self):
        tracker = ProgressTracker(InMemoryProgressStore())
        with pytest.raises(TypeError):
            tracker.handle(object())

    def test_works_with_sqlite_store(self, tmp_path):
        store = SqliteProgressStore(str(tmp_path / "progress.db"))
        tracker = ProgressTracker(store, today=TODAY)
        _play_one_win(tracker)
        reloaded = SqliteProgressStore(str(tmp_path / "progress.db")).load()
        assert reloaded.xp == 575
        assert "first_session" in reloaded.achievements
        assert reloaded.achievement_progress["trades_10"] == 1


# ── Daily streak ─────────────────────────────────────────────────────────


class TestDailyStreak:
    """Unit tests for check_daily_streak()."""

    def test_first_play(self):
        store = InMemoryProgressStore()
        streak, is_new = ProgressTracker(store, today=TODAY).check_daily_streak()
        assert (streak, is_new) == (1, True)
        assert store.load().last_play_date == "2026-03-10"

    def test_consecutive_day_extends(self):
        store = InMemoryProgressStore(SavedProgress(daily_streak=4, last_play_date="2026-03-09"))
        assert ProgressTracker(store, today=TODAY).check_daily_streak() == (5, True)

    def test_same_day_unchanged(self):
        store = InMemoryProgressStore(SavedProgress(daily_streak=4, last_play_date="2026-03-10"))
        assert ProgressTracker(store, today=TODAY).check_daily_streak() == (4, False)

    def test_gap_resets(self):
        """A skipped day restarts the streak at 1."""
        store = InMemoryProgressStore(SavedProgress(daily_streak=9, last_play_date="2026-03-01"))
        assert ProgressTracker(store, today=TODAY).check_daily_streak() == (1, True)
