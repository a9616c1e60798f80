"""Tests for the achievement catalog and evaluator."""

import pytest

from trademaster.progression.achievements import (
    ACHIEVEMENTS,
    PREDICATES,
    TRADE_ACHIEVEMENTS,
    AchievementSnapshot,
    achievements_by_category,
    completion_percentage,
    evaluate_achievements,
    get_achievement,
    total_achievement_xp,
    visible_achievements,
)


def _ids(unlocks):
    return [u.achievement.id for u in unlocks]


# ── Catalog ──────────────────────────────────────────────────────────────


class TestCatalog:
    """Static catalog shape and lookups."""

    def test_fifty_unique_entries(self):
        ids = [a.id for a in ACHIEVEMENTS]
        assert len(ids) == 50
        assert len(set(ids)) == 50

    def test_every_entry_has_a_predicate(self):
        assert set(PREDICATES) == {a.id for a in ACHIEVEMENTS}

    def test_trade_scope_is_part_of_catalog(self):
        assert TRADE_ACHIEVEMENTS <= set(PREDICATES)
        assert "no_loss_session" not in TRADE_ACHIEVEMENTS
        assert "quick_draw" in TRADE_ACHIEVEMENTS

    def test_lookup(self):
        assert get_achievement("first_trade").xp_reward == 50

    def test_unknown_lookup_raises(self):
        """Unknown id → KeyError naming it."""
        with pytest.raises(KeyError, match="nope"):
            get_achievement("nope")

    def test_by_category(self):
        streaks = achievements_by_category("streak")
        assert [a.id for a in streaks][:2] == ["streak_2", "streak_3"]

    def test_hidden_entries_visible_once_unlocked(self):
        """Hidden achievements stay out of the list until unlocked."""
        visible = {a.id for a in visible_achievements()}
        assert "mystery_master" not in visible
        visible = {a.id for a in visible_achievements(["mystery_master"])}
        assert "mystery_master" in visible

    def test_completion_and_xp(self):
        assert completion_percentage([]) == 0
        assert total_achievement_xp(["first_trade", "first_profit"]) == 125


# ── Evaluation ───────────────────────────────────────────────────────────


class TestEvaluate:
    """Unit tests for evaluate_achievements()."""

    def test_empty_snapshot_unlocks_nothing(self):
        assert evaluate_achievements(AchievementSnapshot()) == []

    def test_first_trade_and_profit(self):
        """One trade, +$20 session → First Steps and In the Green."""
        snap = AchievementSnapshot(total_trades=1, session_trades=1, session_pnl=20.0)
        assert _ids(evaluate_achievements(snap)) == ["first_trade", "first_profit"]

    def test_rewards_match_catalog(self):
        """Streak of 3 unlocks both streak tiers with their catalog XP."""
        snap = AchievementSnapshot(max_streak=3)
        unlocks = evaluate_achievements(snap)
        assert _ids(unlocks) == ["streak_2", "streak_3"]
        assert [u.xp_reward for u in unlocks] == [50, 100]

    def test_skips_already_unlocked(self):
        snap = AchievementSnapshot(max_streak=3)
        assert _ids(evaluate_achievements(snap, ["streak_2"])) == ["streak_3"]

    def test_idempotent(self):
        """Re-evaluating with the returned ids unlocks nothing new."""
        snap = AchievementSnapshot(
            total_trades=12, total_sessions=1, session_trades=12,
            session_pnl=600.0, max_streak=5, win_rate=100.0, leverage=10,
        )
        first = evaluate_achievements(snap)
        assert first
        assert evaluate_achievements(snap, _ids(first)) == []

    def test_only_limits_candidates(self):
        """Three perfect trades checked with the trade scope → no Perfect Session."""
        snap = AchievementSnapshot(
            total_trades=3, session_trades=3, session_pnl=300.0,
            max_streak=3, win_rate=100.0,
        )
        ids = _ids(evaluate_achievements(snap, only=TRADE_ACHIEVEMENTS))
        assert "no_loss_session" not in ids
        assert "profit_100" not in ids
        assert ids == ["first_trade", "first_profit", "streak_2", "streak_3"]

    def test_leverage_master_needs_ten_x_and_500(self):
        """10x with +$500 qualifies; 4x with +$900 does not."""
        assert "leverage_master" not in _ids(
            evaluate_achievements(AchievementSnapshot(leverage=4, trade_pnl=900.0))
        )
        assert "leverage_master" in _ids(
            evaluate_achievements(AchievementSnapshot(leverage=10, trade_pnl=500.0))
        )

    def test_quick_draw_requires_profit(self):
        """Held ≤ 3 candles counts only when the trade made money."""
        losing = AchievementSnapshot(trade_pnl=-5.0, position_duration=1)
        winning = AchievementSnapshot(trade_pnl=5.0, position_duration=3)
        assert "quick_draw" not in _ids(evaluate_achievements(losing))
        assert "quick_draw" in _ids(evaluate_achievements(winning))

    def test_perfect_session_needs_three_trades(self):
        """100 % win rate over 2 trades → locked; over 3 → unlocked."""
        two = AchievementSnapshot(session_trades=2, win_rate=100.0)
        three = AchievementSnapshot(session_trades=3, win_rate=100.0)
        assert "no_loss_session" not in _ids(evaluate_achievements(two))
        assert "no_loss_session" in _ids(evaluate_achievements(three))

    def test_comeback_and_survivor(self):
        """55 % drawdown finished in profit unlocks both recovery achievements."""
        snap = AchievementSnapshot(max_drawdown=55.0, session_pnl=1.0)
        ids = _ids(evaluate_achievements(snap))
        assert "comeback_50" in ids
        assert "survivor" in ids

    def test_distinct_symbol_achievements(self):
        snap = AchievementSnapshot(distinct_meme_symbols=5, distinct_crypto_symbols=4)
        ids = _ids(evaluate_achievements(snap))
        assert "meme_trader" in ids
        assert "crypto_explorer" not in ids

    def test_mystery_master(self):
        snap = AchievementSnapshot(is_mystery_mode=True, session_pnl=1_000.0)
        assert "mystery_master" in _ids(evaluate_achievements(snap))
