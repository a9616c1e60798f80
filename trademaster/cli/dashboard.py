"""CLI dashboard — prints session and mission summaries to the console."""

from __future__ import annotations

from typing import Iterable, Optional

from trademaster.career.models import MissionResult
from trademaster.progression.achievements import AchievementUnlock
from trademaster.session.models import SessionResult


def _money(value: float) -> str:
    sign = "-" if value < 0 else "+"
    return f"{sign}${abs(value):,.2f}"


def print_session_summary(
    result: SessionResult, balance: float, stats: Optional[dict] = None,
) -> str:
    """Format and print the terminal summary of a session.

    Args:
        result: The ``SessionResult`` emitted when the session ended.
        balance: Final account balance.
        stats: Optional ``calculate_stats`` output; adds a trade breakdown.

    Returns:
        The formatted string (also printed to stdout).
    """
    lines = [
        "──────────────── TradeMaster Session ────────────────",
        f"  Symbol:          {result.symbol}",
        f"  Grade:           {result.grade}",
        f"  Trades:          {result.total_trades}",
        f"  Win Rate:        {result.win_rate * 100:.1f}%",
        f"  Total P&L:       {_money(result.total_pnl)} ({result.pnl_percent:+.2f}%)",
        f"  Final Balance:   ${balance:,.2f}",
        f"  Max Streak:      {result.max_streak}",
        f"  Max Drawdown:    {result.max_drawdown:.2f}%",
        f"  XP Earned:       {result.xp_earned}",
        f"  Level:           {result.new_level} ({result.level_title})",
    ]
    if stats and stats["total_trades"]:
        pf = stats["profit_factor"]
        lines += [
            f"  Profit Factor:   {pf:.2f}" if pf is not None else "  Profit Factor:   N/A",
            f"  Best Trade:      {_money(stats['best_trade'])}",
            f"  Worst Trade:     {_money(stats['worst_trade'])}",
        ]
    lines.append("─────────────────────────────────────────────────────")
    output = "\n".join(lines)
    print(output)
    return output


def print_mission_result(result: MissionResult) -> str:
    """Format and print per-condition outcomes of a mission attempt."""
    status = "COMPLETE" if result.all_conditions_met else "FAILED"
    lines = [
        f"──────────────── Mission {status} ────────────────",
        f"  Mission:         {result.mission_id}",
        f"  Grade:           {result.grade}",
        f"  Score:           {result.score:,}",
    ]
    for r in result.condition_results:
        mark = "x" if r.passed else " "
        label = r.condition.description or r.condition.type
        lines.append(
            f"  [{mark}] {label} (actual {r.actual_value:,.2f}, target {r.target_value:,.2f})"
        )
    for reward in result.rewards:
        lines.append(f"  Reward:          {reward.label}")
    lines.append("──────────────────────────────────────────────")
    output = "\n".join(lines)
    print(output)
    return output


def print_unlocks(unlocks: Iterable[AchievementUnlock]) -> str:
    """Print newly unlocked achievements, one per line."""
    lines = [
        f"  Achievement: {u.achievement.name} (+{u.xp_reward} XP)"
        for u in unlocks
    ]
    output = "\n".join(lines)
    if output:
        print(output)
    return output
