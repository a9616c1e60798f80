"""Session statistics — pure functions over a trade history.

Also builds the ``AchievementSnapshot`` values the achievement evaluator
consumes, merging session state with lifetime totals.
"""

from __future__ import annotations

from typing import Optional

from trademaster.market.models import symbols_in_category
from trademaster.progression.achievements import AchievementSnapshot
from trademaster.repos.progress_repo import SavedProgress
from trademaster.session.models import CompletedTrade, SessionState


def calculate_stats(trades: list[CompletedTrade]) -> dict:
    """Compute summary statistics from a list of closed trades.

    Returns:
        Dict with ``total_trades``, ``winning_trades``, ``losing_trades``,
        ``win_rate``, ``profit_factor``, ``net_pnl``, ``average_pnl``,
        ``best_trade``, ``worst_trade`` and ``max_drawdown``.
    """
    if not trades:
        return {
            "total_trades": 0,
            "winning_trades": 0,
            "losing_trades": 0,
            "win_rate": 0.0,
            "profit_factor": None,
            "net_pnl": 0.0,
            "average_pnl": 0.0,
            "best_trade": 0.0,
            "worst_trade": 0.0,
            "max_drawdown": 0.0,
        }

    pnls = [t.pnl for t in trades]
    total = len(pnls)
    winners = [p for p in pnls if p > 0]
    losers = [p for p in pnls if p <= 0]

    gross_profit = sum(winners)
    gross_loss = abs(sum(losers))
    profit_factor: Optional[float] = (
        gross_profit / gross_loss if gross_loss > 0 else None
    )
    net_pnl = sum(pnls)

    return {
        "total_trades": total,
        "winning_trades": len(winners),
        "losing_trades": len(losers),
        "win_rate": round(len(winners) / total, 4),
        "profit_factor": round(profit_factor, 4) if profit_factor is not None else None,
        "net_pnl": round(net_pnl, 2),
        "average_pnl": round(net_pnl / total, 2),
        "best_trade": round(max(pnls), 2),
        "worst_trade": round(min(pnls), 2),
        "max_drawdown": round(_max_drawdown(pnls), 4),
    }


def _max_drawdown(pnls: list[float]) -> float:
    """Maximum drawdown from the cumulative P&L curve.

    Returns the largest peak-to-trough decline as a positive number.
    """
    cumulative = 0.0
    peak = 0.0
    max_dd = 0.0
    for p in pnls:
        cumulative += p
        if cumulative > peak:
            peak = cumulative
        max_dd = max(max_dd, peak - cumulative)
    return max_dd


# ── Achievement snapshots ────────────────────────────────────────────────


def _base_fields(state: SessionState, lifetime: SavedProgress) -> dict:
    symbols = set(lifetime.traded_symbols)
    if state.symbol and not state.mystery_mode:
        symbols.add(state.symbol)
    return {
        "total_sessions": lifetime.total_sessions,
        "session_trades": len(state.trades),
        "session_pnl": state.total_pnl,
        "current_streak": state.current_streak,
        "max_streak": state.max_streak,
        "win_rate": state.win_rate * 100.0,
        "max_drawdown": state.max_drawdown * 100.0,
        "daily_streak": lifetime.daily_streak,
        "is_mystery_mode": state.mystery_mode,
        "distinct_meme_symbols": len(symbols_in_category(symbols, "meme")),
        "distinct_crypto_symbols": len(symbols_in_category(symbols, "crypto")),
    }


def trade_snapshot(
    state: SessionState,
    trade: CompletedTrade,
    lifetime: SavedProgress,
) -> AchievementSnapshot:
    """Statistics right after *trade* closed.

    Lifetime trade and profit totals include the current session so far.
    """
    return AchievementSnapshot(
        **_base_fields(state, lifetime),
        total_trades=lifetime.total_trades + len(state.trades),
        total_profit=lifetime.total_profit + state.total_pnl,
        leverage=trade.leverage,
        position_duration=trade.duration,
        trade_pnl=trade.pnl,
        is_short=trade.side == "short",
    )


def session_snapshot(state: SessionState, lifetime: SavedProgress) -> AchievementSnapshot:
    """Statistics at session end.

    *lifetime* must already include the finished session.
    """
    return AchievementSnapshot(
        **_base_fields(state, lifetime),
        total_trades=lifetime.total_trades,
        total_profit=lifetime.total_profit,
        leverage=state.leverage,
        is_short=any(t.side == "short" for t in state.trades),
    )
