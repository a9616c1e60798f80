"""Session engine — the trading-session state machine.

Replays a candle series one tick at a time and applies player actions
against it.  States run ``idle → playing ⇄ paused → ended``.  Actions that
are illegal in the current state are ignored rather than raised, because a
reactive UI may fire them at any moment; malformed inputs (bad series,
unsupported leverage or speed) raise ``ValueError``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Callable, Optional

from trademaster.market.models import Candle, validate_series
from trademaster.progression.scoring import level_for_xp, session_result, trade_xp
from trademaster.risk.pnl import (
    calculate_drawdown,
    is_liquidated,
    position_size,
    unrealized_pnl,
    validate_leverage,
)
from trademaster.session.actions import (
    Action,
    Buy,
    ClosePosition,
    EndGame,
    Event,
    LoadData,
    Pause,
    Reset,
    Resume,
    SellHalf,
    Sell,
    SessionEnded,
    SetLeverage,
    SetSpeed,
    StartGame,
    Tick,
    TogglePlay,
    TradeClosed,
)
from trademaster.session.models import (
    DEFAULT_STARTING_BALANCE,
    SPEED_OPTIONS,
    CompletedTrade,
    Position,
    SessionState,
    Side,
)

logger = logging.getLogger("trademaster.session")

DEFAULT_MIN_PLAYABLE_CANDLES = 60

EventHandler = Callable[[Event], None]


def random_start_index(
    total_candles: int,
    min_playable_candles: int = DEFAULT_MIN_PLAYABLE_CANDLES,
    rng: Optional[random.Random] = None,
) -> int:
    """Pick a start index leaving at least *min_playable_candles* to play.

    Returns a value in ``[0, total - min_playable)``, or 0 when the series
    is too short for that range to be non-empty.
    """
    max_start = max(0, total_candles - min_playable_candles)
    if max_start == 0:
        return 0
    return (rng or random.Random()).randrange(max_start)


class SessionEngine:
    """Owns one ``SessionState`` and applies actions to it.

    Args:
        starting_balance: Cash each session starts with.
        xp: The player's cumulative XP carried in from earlier sessions.
        min_playable_candles: Candles kept ahead of a random start index.
        rng: Random source for start indices.  Pass a seeded
             ``random.Random`` for reproducible replays.
    """

    def __init__(
        self,
        starting_balance: float = DEFAULT_STARTING_BALANCE,
        xp: int = 0,
        min_playable_candles: int = DEFAULT_MIN_PLAYABLE_CANDLES,
        rng: Optional[random.Random] = None,
    ) -> None:
        if starting_balance <= 0:
            raise ValueError(
                f"starting_balance must be positive, got {starting_balance}"
            )
        if xp < 0:
            raise ValueError(f"xp must not be negative, got {xp}")
        self._starting_balance = starting_balance
        self._min_playable = min_playable_candles
        self._rng = rng or random.Random()
        self._subscribers: list[EventHandler] = []
        self._trade_seq = 0
        self._state = self._fresh_state(xp=xp)

        self._handlers: dict[type, Callable[[Action, list[Event]], None]] = {
            LoadData: self._load_data,
            StartGame: self._start_game,
            Tick: self._tick,
            Buy: lambda action, events: self._open("long", events),
            Sell: lambda action, events: self._open("short", events),
            ClosePosition: self._close_position,
            SellHalf: self._sell_half,
            SetLeverage: self._set_leverage,
            SetSpeed: self._set_speed,
            TogglePlay: self._toggle_play,
            Pause: self._pause,
            Resume: self._resume,
            EndGame: self._end_game,
            Reset: self._reset,
        }

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        """The live session state.  Treat as read-only."""
        return self._state

    def snapshot(self) -> SessionState:
        """An independent copy of the current state."""
        return self._state.snapshot()

    def subscribe(self, handler: EventHandler) -> None:
        """Register *handler* to receive every ``TradeClosed`` / ``SessionEnded``."""
        self._subscribers.append(handler)

    def dispatch(self, action: Action) -> SessionState:
        """Apply *action* and return the (possibly unchanged) state.

        Raises:
            TypeError: If *action* is not a session action.
            ValueError: If the action carries an invalid value.
        """
        handler = self._handlers.get(type(action))
        if handler is None:
            raise TypeError(f"unknown session action: {action!r}")

        events: list[Event] = []
        handler(action, events)
        for event in events:
            for subscriber in self._subscribers:
                subscriber(event)
        return self._state

    # Convenience wrappers for drivers and tests.

    def load(self, symbol: str, candles, mystery_mode: bool = False) -> SessionState:
        return self.dispatch(LoadData(symbol, candles, mystery_mode))

    def start(self, start_index: Optional[int] = None) -> SessionState:
        return self.dispatch(StartGame(start_index))

    def tick(self) -> SessionState:
        return self.dispatch(Tick())

    def buy(self) -> SessionState:
        return self.dispatch(Buy())

    def sell(self) -> SessionState:
        return self.dispatch(Sell())

    def close(self) -> SessionState:
        return self.dispatch(ClosePosition())

    def sell_half(self) -> SessionState:
        return self.dispatch(SellHalf())

    def end(self) -> SessionState:
        return self.dispatch(EndGame())

    # ── Lifecycle handlers ───────────────────────────────────────────────

    def _fresh_state(self, xp: int, **fields) -> SessionState:
        return SessionState(
            balance=self._starting_balance,
            starting_balance=self._starting_balance,
            peak_balance=self._starting_balance,
            xp=xp,
            level=level_for_xp(xp),
            **fields,
        )

    def _load_data(self, action: LoadData, events: list[Event]) -> None:
        candles = validate_series(action.candles)
        self._trade_seq = 0
        self._state = self._fresh_state(
            xp=self._state.xp,
            symbol=action.symbol,
            candles=candles,
            mystery_mode=action.mystery_mode,
        )
        logger.info("Loaded %d candles for %s", len(candles), action.symbol)

    def _start_game(self, action: StartGame, events: list[Event]) -> None:
        s = self._state
        if s.status != "idle":
            self._ignore("start", "session already started")
            return
        if not s.candles:
            self._ignore("start", "no candle data loaded")
            return

        if action.start_index is None:
            start = random_start_index(len(s.candles), self._min_playable, self._rng)
        else:
            start = action.start_index
            if not 0 <= start < len(s.candles):
                raise ValueError(
                    f"start_index must be in [0, {len(s.candles)}), got {start}"
                )

        self._trade_seq = 0
        self._state = self._fresh_state(
            xp=s.xp,
            symbol=s.symbol,
            candles=s.candles,
            mystery_mode=s.mystery_mode,
            candle_index=start,
            leverage=s.leverage,
            speed_multiplier=s.speed_multiplier,
            is_playing=True,
            status="playing",
        )
        logger.info(
            "Session started on %s at candle %d/%d (balance $%.2f)",
            s.symbol, start, len(s.candles), self._starting_balance,
        )

    def _reset(self, action: Reset, events: list[Event]) -> None:
        self._trade_seq = 0
        self._state = self._fresh_state(xp=self._state.xp)

    # ── Tick ─────────────────────────────────────────────────────────────

    def _tick(self, action: Tick, events: list[Event]) -> None:
        s = self._state
        if s.status != "playing" or not s.is_playing:
            self._ignore("tick", f"status is {s.status}")
            return

        next_index = s.candle_index + 1
        if next_index >= len(s.candles):
            # Out of data: settle like EndGame, at the last candle's close.
            if s.position is not None:
                self._close_all(events)
            self._finish(events)
            return

        candle = s.candles[next_index]
        open_pnl = 0.0

        if s.position is not None:
            pnl, _ = unrealized_pnl(s.position, candle.close)
            if is_liquidated(s.balance, pnl):
                s.candle_index = next_index
                self._liquidate(candle, events)
                return
            open_pnl = pnl

        equity = s.balance + open_pnl
        s.candle_index = next_index
        s.open_pnl = open_pnl
        s.peak_balance = max(s.peak_balance, equity)
        s.max_drawdown = max(
            s.max_drawdown, calculate_drawdown(equity, s.peak_balance)
        )

    def _liquidate(self, candle: Candle, events: list[Event]) -> None:
        s = self._state
        trade, xp = self._realize(s.position.quantity, candle)
        s.position = None
        s.open_pnl = 0.0
        s.balance = 0.0
        s.total_pnl = s.balance - s.starting_balance
        s.max_drawdown = max(
            s.max_drawdown, calculate_drawdown(0.0, s.peak_balance)
        )
        logger.warning(
            "Liquidated %s %dx at %.4f (loss %.2f)",
            trade.side, trade.leverage, trade.exit_price, trade.pnl,
        )
        events.append(TradeClosed(trade, xp, s.snapshot(), liquidated=True))
        self._finish(events)

    # ── Trading handlers ─────────────────────────────────────────────────

    def _open(self, side: Side, events: list[Event]) -> None:
        s = self._state
        if s.status != "playing":
            self._ignore(f"open {side}", f"status is {s.status}")
            return

        if s.position is not None:
            if s.position.side != side:
                self._close_all(events)
            else:
                self._ignore(f"open {side}", "position already open")
            return

        if s.balance <= 0:
            self._ignore(f"open {side}", "no balance")
            return

        candle = s.current_candle
        quantity = position_size(s.balance, candle.close, s.leverage)
        s.position = Position(
            side=side,
            entry_price=candle.close,
            quantity=quantity,
            leverage=s.leverage,
            entry_index=s.candle_index,
            entry_time=candle.time,
        )
        logger.debug(
            "Opened %s %dx: %.4f units at %.4f",
            side, s.leverage, quantity, candle.close,
        )

    def _close_position(self, action: ClosePosition, events: list[Event]) -> None:
        s = self._state
        if s.position is None or s.status != "playing":
            self._ignore("close", "no open position while playing")
            return
        self._close_all(events)

    def _sell_half(self, action: SellHalf, events: list[Event]) -> None:
        s = self._state
        if s.position is None or s.status != "playing":
            self._ignore("sell half", "no open position while playing")
            return

        candle = s.current_candle
        half = s.position.quantity / 2
        trade, xp = self._realize(half, candle)
        s.position = replace(s.position, quantity=s.position.quantity - half)
        s.open_pnl, _ = unrealized_pnl(s.position, candle.close)
        events.append(TradeClosed(trade, xp, s.snapshot()))

    def _close_all(self, events: list[Event]) -> None:
        s = self._state
        trade, xp = self._realize(s.position.quantity, s.current_candle)
        s.position = None
        s.open_pnl = 0.0
        events.append(TradeClosed(trade, xp, s.snapshot()))

    def _realize(self, quantity: float, candle: Candle) -> tuple[CompletedTrade, int]:
        """Close *quantity* of the open position at *candle*'s close.

        Updates balance, history, counters, streaks and XP; leaves the
        position itself for the caller to clear or shrink.
        """
        s = self._state
        closed = replace(s.position, quantity=quantity)
        pnl, pnl_percent = unrealized_pnl(closed, candle.close)

        self._trade_seq += 1
        trade = CompletedTrade(
            id=f"trade_{self._trade_seq}",
            side=closed.side,
            entry_price=closed.entry_price,
            exit_price=candle.close,
            quantity=quantity,
            leverage=closed.leverage,
            pnl=pnl,
            pnl_percent=pnl_percent,
            entry_time=closed.entry_time,
            exit_time=candle.time,
            entry_index=closed.entry_index,
            exit_index=s.candle_index,
        )

        is_win = pnl > 0
        streak = s.current_streak + 1 if is_win else 0
        xp = trade_xp(trade, streak)

        s.balance += pnl
        s.total_pnl = s.balance - s.starting_balance
        s.trades.append(trade)
        if is_win:
            s.win_count += 1
        else:
            s.loss_count += 1
        s.current_streak = streak
        s.max_streak = max(s.max_streak, streak)
        s.xp += xp
        s.session_xp += xp
        s.level = level_for_xp(s.xp)

        logger.debug(
            "Closed %s %s: pnl %.2f (%.2f%%), +%d XP",
            trade.id, trade.side, pnl, pnl_percent, xp,
        )
        return trade, xp

    # ── Control handlers ─────────────────────────────────────────────────

    def _set_leverage(self, action: SetLeverage, events: list[Event]) -> None:
        validate_leverage(action.leverage)
        if self._state.position is not None:
            self._ignore("set leverage", "position open")
            return
        self._state.leverage = action.leverage

    def _set_speed(self, action: SetSpeed, events: list[Event]) -> None:
        if action.speed not in SPEED_OPTIONS:
            raise ValueError(
                f"speed must be one of {SPEED_OPTIONS}, got {action.speed}"
            )
        self._state.speed_multiplier = action.speed

    def _toggle_play(self, action: TogglePlay, events: list[Event]) -> None:
        s = self._state
        if s.status in ("idle", "ended"):
            self._ignore("toggle play", f"status is {s.status}")
            return
        if s.is_playing:
            s.is_playing = False
            s.status = "paused"
        else:
            s.is_playing = True
            s.status = "playing"

    def _pause(self, action: Pause, events: list[Event]) -> None:
        s = self._state
        s.is_playing = False
        if s.status == "playing":
            s.status = "paused"

    def _resume(self, action: Resume, events: list[Event]) -> None:
        s = self._state
        if s.status in ("idle", "ended"):
            self._ignore("resume", f"status is {s.status}")
            return
        s.is_playing = True
        s.status = "playing"

    def _end_game(self, action: EndGame, events: list[Event]) -> None:
        s = self._state
        if s.status in ("idle", "ended"):
            self._ignore("end game", f"status is {s.status}")
            return
        if s.position is not None:
            self._close_all(events)
        self._finish(events)

    # ── Helpers ──────────────────────────────────────────────────────────

    def _finish(self, events: list[Event]) -> None:
        s = self._state
        s.is_playing = False
        s.status = "ended"
        result = session_result(s)
        logger.info(
            "Session ended on %s: %d trades, PnL $%.2f (%.2f%%), grade %s, +%d XP",
            result.symbol, result.total_trades, result.total_pnl,
            result.pnl_percent, result.grade, result.xp_earned,
        )
        events.append(SessionEnded(result, s.snapshot()))

    @staticmethod
    def _ignore(action: str, reason: str) -> None:
        logger.debug("Ignored %s: %s", action, reason)
