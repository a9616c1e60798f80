"""TradeMaster — command-line entry point.

Replays a session deterministically from a candle file and a scripted
list of actions, then prints the session summary (and the mission result
with ``--mission``).

Usage:
    python -m trademaster.main --candles data/aapl.csv --symbol AAPL \\
        --actions "buy@3,close@10,sell@12,end@20" --start 0
"""

from __future__ import annotations

import argparse
import logging
import random
from typing import Optional, Sequence

from trademaster.career.evaluator import evaluate_mission
from trademaster.career.missions import get_mission
from trademaster.career.models import MissionSnapshot
from trademaster.cli.dashboard import print_mission_result, print_session_summary, print_unlocks
from trademaster.config import load_config
from trademaster.market.loader import load_candles
from trademaster.market.models import Candle
from trademaster.progression.tracker import ProgressTracker
from trademaster.repos.progress_repo import SqliteProgressStore
from trademaster.session.actions import (
    Action,
    Buy,
    ClosePosition,
    EndGame,
    Event,
    Pause,
    Resume,
    SellHalf,
    Sell,
    SessionEnded,
    SetLeverage,
)
from trademaster.session.engine import SessionEngine
from trademaster.session.models import SessionResult, SessionState
from trademaster.session.stats import calculate_stats

logger = logging.getLogger("trademaster")

_SCRIPT_ACTIONS: dict[str, type] = {
    "buy": Buy,
    "sell": Sell,
    "close": ClosePosition,
    "half": SellHalf,
    "pause": Pause,
    "resume": Resume,
    "end": EndGame,
}


# ── Action scripts ───────────────────────────────────────────────────────


def parse_actions(script: str) -> list[tuple[int, Action]]:
    """Parse ``"buy@3,close@10"`` into ``[(3, Buy()), (10, ClosePosition())]``.

    The number is how many ticks have elapsed when the action fires.
    Actions sharing a tick keep their script order.

    Raises:
        ValueError: On an unknown action name or a malformed entry.
    """
    steps: list[tuple[int, Action]] = []
    for raw in script.split(","):
        entry = raw.strip()
        if not entry:
            continue
        name, sep, at = entry.partition("@")
        name = name.strip().lower()
        if not sep:
            raise ValueError(f"Action entry must look like name@tick, got {entry!r}")
        if name not in _SCRIPT_ACTIONS:
            raise ValueError(
                f"Unknown action '{name}'. Available: {sorted(_SCRIPT_ACTIONS)}"
            )
        try:
            tick = int(at)
        except ValueError:
            raise ValueError(f"Action tick must be an integer, got {at!r}") from None
        if tick < 0:
            raise ValueError(f"Action tick must not be negative, got {tick}")
        steps.append((tick, _SCRIPT_ACTIONS[name]()))
    return sorted(steps, key=lambda step: step[0])


def run_session(
    engine: SessionEngine,
    symbol: str,
    candles: Sequence[Candle],
    actions: Sequence[tuple[int, Action]] = (),
    start_index: Optional[int] = 0,
    leverage: int = 1,
    mystery_mode: bool = False,
) -> tuple[SessionState, SessionResult]:
    """Drive *engine* through one complete session.

    Ticks until the session ends, firing each scripted action once its
    tick count is reached.  A paused session is ended once the script has
    nothing left to resume it.
    """
    results: list[SessionResult] = []

    def _capture(event: Event) -> None:
        if isinstance(event, SessionEnded):
            results.append(event.result)

    engine.subscribe(_capture)
    engine.load(symbol, candles, mystery_mode)
    engine.dispatch(SetLeverage(leverage))
    engine.start(start_index)

    pending = list(actions)
    ticks = 0
    while engine.state.status != "ended":
        while pending and pending[0][0] <= ticks:
            engine.dispatch(pending.pop(0)[1])
        if engine.state.status == "ended":
            break
        if engine.state.status == "paused" and not pending:
            engine.end()
            break
        engine.tick()
        ticks += 1

    return engine.snapshot(), results[-1]


# ── CLI ──────────────────────────────────────────────────────────────────


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TradeMaster session replay")
    parser.add_argument("--candles", required=True, help="CSV or JSON candle file")
    parser.add_argument("--symbol", help="Symbol label (default: mission symbol or 'UNKNOWN')")
    parser.add_argument(
        "--actions", default="", help='Action script, e.g. "buy@3,close@10"',
    )
    parser.add_argument(
        "--start", type=int, default=None,
        help="Start candle index (default: random, seeded by RANDOM_SEED)",
    )
    parser.add_argument("--leverage", type=int, default=1, help="Leverage (1, 2, 4, 10)")
    parser.add_argument("--mission", help="Evaluate the session as this career mission")
    parser.add_argument("--mystery", action="store_true", help="Hide the symbol in records")
    parser.add_argument(
        "--no-save", action="store_true", help="Do not persist progress to the database",
    )
    parser.add_argument("--env", default=None, help="Path to a .env file")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    config = load_config(args.env)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    mission = get_mission(args.mission) if args.mission else None
    symbol = args.symbol or (mission.stock_symbol if mission else "UNKNOWN")
    candles = load_candles(args.candles)
    actions = parse_actions(args.actions)
    logger.info("Replaying %s from %s with %d scripted actions", symbol, args.candles, len(actions))

    rng = random.Random(config.random_seed)
    engine_kwargs = dict(
        starting_balance=config.starting_balance,
        min_playable_candles=config.min_playable_candles,
        rng=rng,
    )

    tracker: Optional[ProgressTracker] = None
    if args.no_save:
        engine = SessionEngine(**engine_kwargs)
    else:
        tracker = ProgressTracker(SqliteProgressStore(config.db_path))
        tracker.check_daily_streak()
        engine = tracker.create_engine(**engine_kwargs)

    state, result = run_session(
        engine, symbol, candles, actions,
        start_index=args.start, leverage=args.leverage, mystery_mode=args.mystery,
    )
    if tracker is not None:
        result = tracker.last_result
    print_session_summary(result, state.balance, calculate_stats(state.trades))

    if tracker is not None:
        print_unlocks(tracker.new_unlocks)

    if mission is not None:
        print_mission_result(evaluate_mission(mission, MissionSnapshot.from_state(state)))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
