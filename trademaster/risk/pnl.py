"""P&L calculator — pure math, no I/O.

Position sizing, unrealised P&L, drawdown and the liquidation test used
by the session engine on every tick and close.
"""

from trademaster.session.models import Position

ALLOWED_LEVERAGES: tuple[int, ...] = (1, 2, 4, 10)


def validate_leverage(leverage: int) -> int:
    """Return *leverage* unchanged, or raise ``ValueError`` if unsupported."""
    if leverage not in ALLOWED_LEVERAGES:
        raise ValueError(
            f"leverage must be one of {ALLOWED_LEVERAGES}, got {leverage}"
        )
    return leverage


def position_size(balance: float, price: float, leverage: int) -> float:
    """Calculate position quantity.

    Uses the whole balance with leverage applied::

        notional = balance × leverage
        quantity = notional / price

    Raises:
        ValueError: If *price* is not positive, *balance* is negative or
            *leverage* is not an allowed value.
    """
    if price <= 0:
        raise ValueError(f"price must be positive, got {price}")
    if balance < 0:
        raise ValueError(f"balance must not be negative, got {balance}")
    validate_leverage(leverage)
    return (balance * leverage) / price


def unrealized_pnl(position: Position, current_price: float) -> tuple[float, float]:
    """Return ``(pnl, pnl_percent)`` for *position* marked at *current_price*.

    ``pnl_percent`` is relative to the margin actually committed, i.e.
    the notional divided by leverage.
    """
    if position.side == "long":
        price_diff = current_price - position.entry_price
    else:
        price_diff = position.entry_price - current_price

    pnl = price_diff * position.quantity
    initial_investment = (position.quantity * position.entry_price) / position.leverage
    if initial_investment <= 0:
        return pnl, 0.0
    return pnl, (pnl / initial_investment) * 100.0


def calculate_drawdown(current_equity: float, peak_equity: float) -> float:
    """Decline from peak as a fraction in ``[0, 1]``; 0 when peak <= 0."""
    if peak_equity <= 0:
        return 0.0
    return max(0.0, (peak_equity - current_equity) / peak_equity)


def is_liquidated(balance: float, open_pnl: float) -> bool:
    """``True`` when unrealised losses wipe out the balance."""
    return balance + open_pnl <= 0
