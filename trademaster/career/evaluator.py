"""Mission evaluator — win conditions, mission grade and score.

Every condition except ``max_drawdown`` passes when the actual value is at
least the target; ``max_drawdown`` passes when it is at most the target.
"""

from __future__ import annotations

import logging
from typing import Iterable, Union

from trademaster.career.models import (
    Mission,
    MissionResult,
    MissionSnapshot,
    WinCondition,
    WinConditionResult,
)

logger = logging.getLogger("trademaster.career")

CONDITION_POINTS = 200
STREAK_POINTS = 50
WIN_RATE_POINTS = 10


# ── Conditions ───────────────────────────────────────────────────────────


def _check_condition(
    condition: WinCondition, snap: MissionSnapshot,
) -> WinConditionResult:
    target = condition.value
    kind = condition.type

    if kind == "profit_target":
        actual = snap.total_pnl
        passed = actual >= target
    elif kind == "profit_percent":
        actual = snap.pnl_percent
        passed = actual >= target
    elif kind == "survive":
        actual = 1.0 if snap.balance > 0 else 0.0
        passed = snap.balance > 0
    elif kind == "win_streak":
        actual = snap.max_streak
        passed = actual >= target
    elif kind == "win_rate":
        actual = snap.win_rate
        passed = actual >= target
    elif kind == "max_drawdown":
        actual = snap.max_drawdown
        passed = actual <= target
    elif kind == "beat_market":
        actual = snap.pnl_percent - snap.buy_and_hold_return
        passed = snap.pnl_percent > snap.buy_and_hold_return
    elif kind == "trades_count":
        actual = snap.total_trades
        passed = actual >= target
    else:
        raise ValueError(f"Unknown win condition type: {kind!r}")

    return WinConditionResult(
        condition=condition,
        passed=passed,
        actual_value=float(actual),
        target_value=float(target),
    )


def check_win_conditions(
    mission_or_conditions: Union[Mission, Iterable[WinCondition]],
    snapshot: MissionSnapshot,
) -> list[WinConditionResult]:
    """Evaluate each condition in order against *snapshot*."""
    if isinstance(mission_or_conditions, Mission):
        conditions = mission_or_conditions.win_conditions
    else:
        conditions = tuple(mission_or_conditions)
    return [_check_condition(c, snapshot) for c in conditions]


# ── Grade and score ──────────────────────────────────────────────────────


def mission_grade(
    pnl: float,
    pnl_percent: float,
    win_rate: float,
    max_streak: int,
    all_conditions_met: bool,
) -> str:
    """Letter grade for a mission attempt.

    A failed attempt is capped at C; a passed attempt sums P&L, win-rate and
    streak points (max 100) and maps them to S/A/B/C.
    """
    if not all_conditions_met:
        if pnl > 0 and win_rate > 40:
            return "C"
        if pnl > 0:
            return "D"
        return "F"

    points = 0
    if pnl_percent >= 20:
        points += 35
    elif pnl_percent >= 10:
        points += 30
    elif pnl_percent >= 5:
        points += 25
    elif pnl_percent >= 0:
        points += 15

    if win_rate >= 80:
        points += 35
    elif win_rate >= 60:
        points += 30
    elif win_rate >= 50:
        points += 25
    else:
        points += 15

    if max_streak >= 5:
        points += 30
    elif max_streak >= 3:
        points += 20
    else:
        points += 10

    if points >= 90:
        return "S"
    if points >= 75:
        return "A"
    if points >= 60:
        return "B"
    return "C"


def mission_score(
    pnl: float,
    pnl_percent: float,
    win_rate: float,
    max_streak: int,
    conditions_passed: int,
) -> int:
    score = (
        max(0.0, pnl)
        + max(0.0, pnl_percent * 100)
        + win_rate * WIN_RATE_POINTS
        + max_streak * STREAK_POINTS
        + conditions_passed * CONDITION_POINTS
    )
    return int(round(score))


# ── Public API ───────────────────────────────────────────────────────────


def evaluate_mission(mission: Mission, snapshot: MissionSnapshot) -> MissionResult:
    """Evaluate a finished attempt of *mission*.

    Rewards are granted only when every condition passes.
    """
    results = check_win_conditions(mission, snapshot)
    all_met = all(r.passed for r in results)
    passed = sum(1 for r in results if r.passed)

    grade = mission_grade(
        snapshot.total_pnl, snapshot.pnl_percent, snapshot.win_rate,
        snapshot.max_streak, all_met,
    )
    score = mission_score(
        snapshot.total_pnl, snapshot.pnl_percent, snapshot.win_rate,
        snapshot.max_streak, passed,
    )

    logger.info(
        "Mission %s: %d/%d conditions passed, grade=%s score=%d",
        mission.id, passed, len(results), grade, score,
    )

    return MissionResult(
        mission_id=mission.id,
        all_conditions_met=all_met,
        condition_results=tuple(results),
        pnl=snapshot.total_pnl,
        pnl_percent=snapshot.pnl_percent,
        grade=grade,
        score=score,
        rewards=mission.rewards if all_met else (),
    )
