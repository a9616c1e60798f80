"""Tests for career progress bookkeeping."""

from datetime import datetime, timezone

import pytest

from trademaster.career.missions import CHAPTERS
from trademaster.career.progress import (
    chapter_completion_percent,
    complete_mission,
    completion_percent,
    is_mission_unlocked,
    new_career_progress,
    record_attempt,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _complete_chapter(progress, chapter_id):
    chapter = CHAPTERS[chapter_id - 1]
    for mission in chapter.missions:
        progress = complete_mission(progress, mission.id, 100.0, 1_000, "B", now=NOW)
    return progress


class TestNewCareer:
    """Unit tests for new_career_progress()."""

    def test_only_first_chapter_unlocked(self):
        progress = new_career_progress()
        assert progress.current_chapter == 1
        assert progress.current_mission_id == "c1m1-first-trade"
        assert progress.chapters[1].unlocked
        assert not progress.chapters[2].unlocked
        assert progress.chapters[3].total_missions == 5
        assert progress.total_missions_completed == 0


class TestCompleteMission:
    """Unit tests for complete_mission()."""

    def test_records_best_results(self):
        """A second, lower-P&L run keeps the best of each field."""
        progress = new_career_progress()
        progress = complete_mission(progress, "c1m1-first-trade", 80.0, 900, "B", now=NOW)
        progress = complete_mission(progress, "c1m1-first-trade", 60.0, 1_200, "C", now=NOW)
        scores = progress.mission_scores["c1m1-first-trade"]
        assert scores.completed
        assert scores.best_score == 1_200
        assert scores.best_pnl == 80.0
        assert scores.best_grade == "B"
        assert scores.attempts == 2
        assert scores.completed_at == NOW.isoformat()

    def test_repeat_completion_counts_once(self):
        progress = new_career_progress()
        for _ in range(3):
            progress = complete_mission(progress, "c1m1-first-trade", 1.0, 1, "C", now=NOW)
        assert progress.completed_missions == ("c1m1-first-trade",)
        assert progress.chapters[1].missions_completed == 1

    def test_advances_current_mission(self):
        progress = complete_mission(new_career_progress(), "c1m1-first-trade", 1.0, 1, "C")
        assert progress.current_mission_id == "c1m2-cut-losses"

    def test_finishing_chapter_unlocks_next(self):
        """All five chapter 1 missions → chapter 2 opens and becomes current."""
        progress = _complete_chapter(new_career_progress(), 1)
        assert progress.chapters[2].unlocked
        assert not progress.chapters[3].unlocked
        assert progress.current_chapter == 2
        assert progress.current_mission_id == "c2m1-trend-following"

    def test_negative_first_pnl_is_kept(self):
        progress = complete_mission(new_career_progress(), "c1m5-boss-flash-crash", -5.0, 0, "F")
        assert progress.mission_scores["c1m5-boss-flash-crash"].best_pnl == -5.0

    def test_unknown_mission_raises(self):
        with pytest.raises(KeyError):
            complete_mission(new_career_progress(), "nope", 1.0, 1, "C")

    def test_input_is_not_mutated(self):
        original = new_career_progress()
        complete_mission(original, "c1m1-first-trade", 1.0, 1, "C")
        assert original.completed_missions == ()
        assert original.mission_scores == {}


class TestRecordAttempt:
    """Unit tests for record_attempt()."""

    def test_counts_attempts_without_completing(self):
        progress = record_attempt(new_career_progress(), "c1m1-first-trade")
        progress = record_attempt(progress, "c1m1-first-trade")
        scores = progress.mission_scores["c1m1-first-trade"]
        assert scores.attempts == 2
        assert not scores.completed
        assert progress.completed_missions == ()


class TestUnlocking:
    """Unit tests for is_mission_unlocked()."""

    def test_first_mission_always_open(self):
        assert is_mission_unlocked(new_career_progress(), "c1m1-first-trade")

    def test_requires_previous_mission(self):
        """Mission 2 opens only after mission 1 is complete."""
        progress = new_career_progress()
        assert not is_mission_unlocked(progress, "c1m2-cut-losses")
        progress = complete_mission(progress, "c1m1-first-trade", 1.0, 1, "C")
        assert is_mission_unlocked(progress, "c1m2-cut-losses")

    def test_locked_chapter(self):
        assert not is_mission_unlocked(new_career_progress(), "c2m1-trend-following")

    def test_first_mission_of_unlocked_chapter(self):
        progress = _complete_chapter(new_career_progress(), 1)
        assert is_mission_unlocked(progress, "c2m1-trend-following")
        assert not is_mission_unlocked(progress, "c2m2-gme-squeeze")

    def test_unknown_mission_is_locked(self):
        assert not is_mission_unlocked(new_career_progress(), "nope")


class TestCompletion:
    """Campaign and chapter completion percentages."""

    def test_percentages(self):
        """Chapter 1 plus one chapter 2 mission → 6 of 15 missions, 40 %."""
        progress = _complete_chapter(new_career_progress(), 1)
        progress = complete_mission(progress, "c2m1-trend-following", 1.0, 1, "C")
        assert completion_percent(progress) == 40
        assert chapter_completion_percent(progress, 1) == 100
        assert chapter_completion_percent(progress, 2) == 20
        assert chapter_completion_percent(progress, 3) == 0
        assert chapter_completion_percent(progress, 9) == 0
