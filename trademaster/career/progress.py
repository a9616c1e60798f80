"""Career progress bookkeeping.

Pure functions over the immutable ``CareerProgress``: each returns an
updated copy.  Persisting the result is up to the caller.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from trademaster.career.missions import CHAPTERS, get_chapter, get_mission, next_mission, total_missions
from trademaster.career.models import CareerProgress, ChapterProgress, MissionProgress
from trademaster.progression.scoring import better_grade


def new_career_progress() -> CareerProgress:
    """Fresh career: only chapter 1 unlocked, positioned on its first mission."""
    chapters = {
        c.id: ChapterProgress(
            chapter_id=c.id,
            missions_completed=0,
            total_missions=len(c.missions),
            unlocked=c.id == CHAPTERS[0].id,
        )
        for c in CHAPTERS
    }
    return CareerProgress(
        current_chapter=CHAPTERS[0].id,
        current_mission_id=CHAPTERS[0].missions[0].id,
        chapters=chapters,
    )


def record_attempt(progress: CareerProgress, mission_id: str) -> CareerProgress:
    """Count an attempt that did not complete the mission."""
    get_mission(mission_id)
    existing = progress.mission_scores.get(mission_id) or MissionProgress(mission_id)
    scores = dict(progress.mission_scores)
    scores[mission_id] = replace(existing, attempts=existing.attempts + 1)
    return replace(progress, mission_scores=scores)


def complete_mission(
    progress: CareerProgress,
    mission_id: str,
    pnl: float,
    score: int,
    grade: str,
    now: Optional[datetime] = None,
) -> CareerProgress:
    """Record a successful attempt, keeping best score/P&L/grade.

    The first completion of a chapter's last mission unlocks the next
    chapter.  The current mission advances to the one after *mission_id*.

    Raises:
        KeyError: If *mission_id* is not in the catalog.
    """
    mission = get_mission(mission_id)
    stamp = (now or datetime.now(timezone.utc)).isoformat()

    existing = progress.mission_scores.get(mission_id) or MissionProgress(mission_id)
    scores = dict(progress.mission_scores)
    scores[mission_id] = MissionProgress(
        mission_id=mission_id,
        completed=True,
        best_score=max(existing.best_score or 0, score),
        best_pnl=pnl if existing.best_pnl is None else max(existing.best_pnl, pnl),
        best_grade=better_grade(existing.best_grade, grade),
        attempts=existing.attempts + 1,
        completed_at=stamp,
    )

    chapters = dict(progress.chapters)
    completed = progress.completed_missions
    if mission_id not in completed:
        completed = completed + (mission_id,)
        chapter = chapters.get(mission.chapter)
        if chapter is not None:
            chapter = replace(chapter, missions_completed=chapter.missions_completed + 1)
            chapters[mission.chapter] = chapter
            following = chapters.get(mission.chapter + 1)
            if chapter.missions_completed >= chapter.total_missions and following is not None:
                chapters[following.chapter_id] = replace(following, unlocked=True)

    updated = replace(
        progress,
        chapters=chapters,
        mission_scores=scores,
        completed_missions=completed,
    )
    upcoming = next_mission(mission_id)
    if upcoming is not None:
        updated = replace(
            updated,
            current_mission_id=upcoming.id,
            current_chapter=upcoming.chapter,
        )
    return updated


def is_mission_unlocked(progress: CareerProgress, mission_id: str) -> bool:
    """A mission is playable when its chapter is unlocked and the previous
    mission in the chapter is completed."""
    try:
        mission = get_mission(mission_id)
    except KeyError:
        return False
    if mission.chapter == CHAPTERS[0].id and mission.order == 1:
        return True

    chapter = progress.chapters.get(mission.chapter)
    if chapter is None or not chapter.unlocked:
        return False
    if mission.order == 1:
        return True

    chapter_data = get_chapter(mission.chapter)
    previous = [m for m in chapter_data.missions if m.order == mission.order - 1]
    if not previous:
        return True
    return previous[0].id in progress.completed_missions


def completion_percent(progress: CareerProgress) -> int:
    total = total_missions()
    if total == 0:
        return 0
    return round(progress.total_missions_completed / total * 100)


def chapter_completion_percent(progress: CareerProgress, chapter_id: int) -> int:
    chapter = progress.chapters.get(chapter_id)
    if chapter is None or chapter.total_missions == 0:
        return 0
    return round(chapter.missions_completed / chapter.total_missions * 100)
