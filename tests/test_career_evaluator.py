"""Tests for career missions — catalog, win conditions, grade and score."""

import pytest

from trademaster.career.evaluator import (
    check_win_conditions,
    evaluate_mission,
    mission_grade,
    mission_score,
)
from trademaster.career.missions import (
    CHAPTERS,
    get_chapter,
    get_mission,
    next_mission,
    total_missions,
)
from trademaster.career.models import Mission, MissionReward, MissionSnapshot, WinCondition
from trademaster.market.models import Candle
from trademaster.session.models import SessionState


# ── Helpers ──────────────────────────────────────────────────────────────


def _make_snapshot(**overrides):
    fields = dict(
        total_pnl=0.0, starting_balance=10_000.0, balance=10_000.0,
        win_count=0, loss_count=0, max_streak=0, current_streak=0,
        max_drawdown=0.0, start_price=100.0, end_price=100.0,
    )
    fields.update(overrides)
    return MissionSnapshot(**fields)


def _make_mission(*conditions, rewards=(MissionReward("xp", 100, "+100 XP"),)):
    return Mission(
        id="test-mission", chapter=1, order=1, title="Test", subtitle="",
        description="", stock_symbol="TEST", start_date="2024-01-01",
        end_date="2024-01-01", win_conditions=tuple(conditions), rewards=rewards,
    )


def _single(kind, value, **snapshot):
    result, = check_win_conditions([WinCondition(kind, value)], _make_snapshot(**snapshot))
    return result


# ── Catalog ──────────────────────────────────────────────────────────────


class TestCatalog:
    """Built-in chapters and missions."""

    def test_three_chapters_of_five(self):
        assert [c.id for c in CHAPTERS] == [1, 2, 3]
        assert [c.unlock_level for c in CHAPTERS] == [1, 10, 20]
        assert all(len(c.missions) == 5 for c in CHAPTERS)
        assert total_missions() == 15

    def test_last_mission_of_each_chapter_is_boss(self):
        for chapter in CHAPTERS:
            assert chapter.missions[-1].is_boss
            assert chapter.missions[-1].difficulty == "boss"

    def test_get_mission(self):
        mission = get_mission("c1m2-cut-losses")
        assert mission.stock_symbol == "MSFT"
        assert [c.type for c in mission.win_conditions] == ["max_drawdown", "trades_count"]

    def test_unknown_mission_raises(self):
        with pytest.raises(KeyError, match="nope"):
            get_mission("nope")

    def test_next_mission_crosses_chapters(self):
        """The last mission of a chapter leads into the next chapter."""
        assert next_mission("c1m1-first-trade").id == "c1m2-cut-losses"
        assert next_mission("c1m5-boss-flash-crash").id == "c2m1-trend-following"
        assert next_mission("c3m5-boss-bear-market") is None

    def test_get_chapter(self):
        assert get_chapter(2).title == "Market Dynamics"
        assert get_chapter(9) is None

    def test_unknown_condition_type_rejected(self):
        with pytest.raises(ValueError, match="Unknown win condition"):
            WinCondition("get_rich", 1)


# ── Conditions ───────────────────────────────────────────────────────────


class TestConditions:
    """Unit tests for check_win_conditions(), one condition type at a time."""

    def test_profit_target_flips_at_equality(self):
        """$500 target: $500 passes, $499.99 fails."""
        assert _single("profit_target", 500, total_pnl=500.0).passed
        assert not _single("profit_target", 500, total_pnl=499.99).passed

    def test_profit_percent(self):
        result = _single("profit_percent", 5, total_pnl=500.0)
        assert result.actual_value == pytest.approx(5.0)
        assert result.passed

    def test_survive(self):
        """Any balance above $0 survives."""
        assert _single("survive", 1, balance=0.01).actual_value == 1.0
        dead = _single("survive", 1, balance=0.0)
        assert dead.actual_value == 0.0
        assert not dead.passed

    def test_win_streak(self):
        assert _single("win_streak", 3, max_streak=3).passed
        assert not _single("win_streak", 3, max_streak=2).passed

    def test_win_rate_zero_without_trades(self):
        result = _single("win_rate", 50)
        assert result.actual_value == 0.0
        assert not result.passed

    def test_win_rate(self):
        result = _single("win_rate", 50, win_count=1, loss_count=1)
        assert result.actual_value == pytest.approx(50.0)
        assert result.passed

    def test_max_drawdown_flips_at_equality_with_le(self):
        """5 % limit: 5.00 % passes, 5.01 % fails."""
        assert _single("max_drawdown", 5, max_drawdown=5.0).passed
        assert not _single("max_drawdown", 5, max_drawdown=5.01).passed
        assert _single("max_drawdown", 5, max_drawdown=0.0).passed

    def test_beat_market(self):
        """+10 % session against a +5 % buy-and-hold → passes."""
        # session +10 %, buy-and-hold +5 %
        result = _single("beat_market", 1, total_pnl=1_000.0, end_price=105.0)
        assert result.actual_value == pytest.approx(5.0)
        assert result.passed

    def test_beat_market_requires_strictly_better(self):
        """Matching the market exactly is not beating it."""
        result = _single("beat_market", 1, total_pnl=0.0, end_price=100.0)
        assert not result.passed

    def test_beat_market_in_falling_market(self):
        # flat session beats a -20 % market
        assert _single("beat_market", 1, end_price=80.0).passed

    def test_trades_count(self):
        assert _single("trades_count", 3, win_count=2, loss_count=1).passed
        assert not _single("trades_count", 3, win_count=2).passed

    def test_results_keep_condition_order(self):
        conditions = [WinCondition("survive", 1), WinCondition("profit_target", 10)]
        results = check_win_conditions(conditions, _make_snapshot())
        assert [r.condition.type for r in results] == ["survive", "profit_target"]
        assert [r.target_value for r in results] == [1.0, 10.0]


# ── Evaluation ───────────────────────────────────────────────────────────


class TestEvaluateMission:
    """Unit tests for evaluate_mission()."""

    def test_profit_and_survive_scenario(self):
        """+$600 and still solvent → both conditions pass, rewards granted."""
        mission = _make_mission(
            WinCondition("profit_target", 500), WinCondition("survive", 1),
        )
        result = evaluate_mission(
            mission, _make_snapshot(total_pnl=600.0, balance=200.0, win_count=1),
        )
        assert result.all_conditions_met
        assert all(r.passed for r in result.condition_results)
        assert result.rewards == mission.rewards
        assert result.xp_reward == 100

    def test_failure_grants_no_rewards(self):
        """A failed mission earns no rewards."""
        mission = _make_mission(WinCondition("profit_target", 500))
        result = evaluate_mission(mission, _make_snapshot(total_pnl=100.0, win_count=1))
        assert not result.all_conditions_met
        assert result.rewards == ()
        assert result.grade == "C"

    def test_score(self):
        mission = _make_mission(WinCondition("profit_target", 500))
        snap = _make_snapshot(total_pnl=1_000.0, win_count=3, loss_count=1, max_streak=3)
        result = evaluate_mission(mission, snap)
        # 1000 + 10 % × 100 + 75 × 10 + 3 × 50 + 200
        assert result.score == 1000 + 1000 + 750 + 150 + 200
        assert result.pnl_percent == pytest.approx(10.0)


class TestMissionGrade:
    """Unit tests for mission_grade() and mission_score()."""

    def test_failed_grades(self):
        assert mission_grade(10.0, 0.1, 50.0, 1, False) == "C"
        assert mission_grade(10.0, 0.1, 40.0, 1, False) == "D"
        assert mission_grade(0.0, 0.0, 90.0, 9, False) == "F"

    def test_passed_grades(self):
        assert mission_grade(2_000, 20.0, 80.0, 5, True) == "S"
        assert mission_grade(1_000, 10.0, 60.0, 3, True) == "A"
        assert mission_grade(500, 5.0, 50.0, 1, True) == "B"
        assert mission_grade(0, 0.0, 0.0, 0, True) == "C"

    def test_score_ignores_losses(self):
        assert mission_score(-500.0, -5.0, 0.0, 0, 0) == 0


class TestSnapshotFromState:
    """Unit tests for MissionSnapshot.from_state()."""

    def test_uses_first_close_and_current_close(self):
        """Buy-and-hold runs from the first close to the close at the current index."""
        candles = tuple(Candle(i, p, p, p, p) for i, p in enumerate([50.0, 60.0, 70.0]))
        state = SessionState(
            candles=candles, candle_index=1, balance=10_500.0,
            total_pnl=500.0, win_count=2, loss_count=1, max_streak=2,
            max_drawdown=0.04,
        )
        snap = MissionSnapshot.from_state(state)
        assert snap.start_price == 50.0
        assert snap.end_price == 60.0
        assert snap.max_drawdown == pytest.approx(4.0)
        assert snap.buy_and_hold_return == pytest.approx(20.0)
        assert snap.win_rate == pytest.approx(200 / 3)

    def test_empty_state(self):
        snap = MissionSnapshot.from_state(SessionState())
        assert snap.start_price == 0.0
        assert snap.buy_and_hold_return == 0.0
