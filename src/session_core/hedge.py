"""
Hedge-mode session calculator (Binance/OKX-style dual position books).

A hedge-mode account can hold a long and a short position in the same
symbol at once, so fills are partitioned by (symbol, position side) and each
book is walked independently:

    LONG / BOTH book:  buy opens or adds, sell closes
    SHORT book:        sell opens or adds, buy closes

Partial fills are first aggregated per order so one order is one position
change. Realized PnL is taken from the venue-reported values rather than
computed from prices. A position inside the tolerance band counts as flat.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Sequence

from config.session_config import SessionConfig
from session_core.annotations import resolve_position_side, resolve_realized_pnl
from session_core.contracts import (
    AggregatedOrder,
    Execution,
    PositionSession,
    PositionSide,
    SessionSide,
    SessionStatus,
    SessionTrade,
    Side,
    sort_newest_first,
)
from session_core.executions import (
    chronological,
    fees_in_major_units,
    group_by,
    is_trade_fill,
)
from session_core.symbols import format_symbol

logger = logging.getLogger("sessions.core")

FEE_CURRENCY = "USDT"


def aggregate_orders(
    executions: Sequence[Execution],
    position_side: PositionSide,
) -> list[AggregatedOrder]:
    """Collapse one book's fills into orders, ascending by earliest fill.

    Fills without an order id are kept as single-fill orders keyed by their
    execution id.
    """
    orders: dict[str, AggregatedOrder] = {}
    for e in executions:
        key = e.order_id or f"exec:{e.exec_id}"
        order = orders.get(key)
        if order is None:
            order = AggregatedOrder(
                order_id=e.order_id or e.exec_id,
                symbol=e.symbol,
                side=e.side,
                position_side=position_side,
                timestamp=e.timestamp,
            )
            orders[key] = order
        order.add(e, resolve_realized_pnl(e))
    return chronological(orders.values(), key=lambda o: o.timestamp)


def _opening_side(position_side: PositionSide) -> Side:
    return Side.SELL if position_side == PositionSide.SHORT else Side.BUY


def _position_delta(order: AggregatedOrder, opening: Side) -> float:
    return order.total_qty if order.side == opening else -order.total_qty


def finalize_hedge_session(
    orders: list[AggregatedOrder],
    session_id: str,
    symbol: str,
    position_side: PositionSide,
    open_time: datetime,
    end_time: datetime,
    config: SessionConfig,
) -> PositionSession:
    """Build a PositionSession from the orders of one session."""
    tolerance = config.hedge.position_tolerance
    opening = _opening_side(position_side)

    entry_qty = exit_qty = 0.0
    entry_cost = exit_cost = 0.0
    commission = 0.0
    realized = 0.0
    running = 0.0
    max_size = 0.0
    for order in orders:
        if order.side == opening:
            entry_qty += order.total_qty
            entry_cost += order.total_cost
        else:
            exit_qty += order.total_qty
            exit_cost += order.total_cost
        commission += order.total_commission
        realized += order.realized_pnl
        running += _position_delta(order, opening)
        max_size = max(max_size, abs(running))

    closed = abs(entry_qty - exit_qty) < tolerance
    avg_entry = entry_cost / entry_qty if entry_qty > 0 else 0.0
    avg_exit = exit_cost / exit_qty if exit_qty > 0 else 0.0
    fees = fees_in_major_units(commission, config.fees.minor_units_per_major)
    is_short = position_side == PositionSide.SHORT

    display = format_symbol(symbol, "binance")
    fills = [e for order in orders for e in order.executions]
    trades = [
        SessionTrade.from_execution(e, display, FEE_CURRENCY)
        for e in chronological(fills, key=lambda e: e.timestamp)
    ]

    return PositionSession(
        id=session_id,
        symbol=symbol,
        display_symbol=display,
        side=SessionSide.SHORT if is_short else SessionSide.LONG,
        open_time=open_time,
        close_time=end_time if closed else None,
        duration=end_time - open_time,
        max_size=max_size,
        total_bought=exit_qty if is_short else entry_qty,
        total_sold=entry_qty if is_short else exit_qty,
        avg_entry_price=avg_entry,
        avg_exit_price=avg_exit if closed else 0.0,
        realized_pnl=realized if closed else 0.0,
        total_fees=fees,
        net_pnl=realized - fees if closed else -fees,
        trade_count=len(trades),
        trades=trades,
        status=SessionStatus.CLOSED if closed else SessionStatus.OPEN,
    )


def _sessions_for_book(
    orders: list[AggregatedOrder],
    symbol: str,
    position_side: PositionSide,
    config: SessionConfig,
    next_id: Callable[[str, PositionSide], str],
) -> list[PositionSession]:
    tolerance = config.hedge.position_tolerance
    gap_limit = config.hedge.session_gap
    opening = _opening_side(position_side)

    def is_flat(position: float) -> bool:
        return abs(position) < tolerance

    sessions: list[PositionSession] = []
    pending: list[AggregatedOrder] = []
    open_time: datetime | None = None
    position = 0.0
    last_time: datetime | None = None

    for order in orders:
        gap = order.timestamp - last_time if last_time is not None else timedelta(0)
        was_flat = is_flat(position)

        if gap > gap_limit and pending and was_flat:
            session = _close_book_session(
                pending, open_time, pending[-1].timestamp, symbol, position_side, config, next_id,
            )
            if session is not None:
                sessions.append(session)
            pending, open_time, position = [], None, 0.0

        position += _position_delta(order, opening)
        now_flat = is_flat(position)

        if was_flat and not now_flat and open_time is None:
            open_time = order.timestamp

        pending.append(order)
        last_time = order.timestamp

        if not was_flat and now_flat:
            session = _close_book_session(
                pending, open_time, order.timestamp, symbol, position_side, config, next_id,
            )
            if session is not None:
                sessions.append(session)
            pending, open_time, position = [], None, 0.0

    if pending:
        session = _close_book_session(
            pending, open_time, pending[-1].timestamp, symbol, position_side, config, next_id,
        )
        if session is not None:
            sessions.append(session)

    return sessions


def _close_book_session(
    pending: list[AggregatedOrder],
    open_time: datetime | None,
    end_time: datetime,
    symbol: str,
    position_side: PositionSide,
    config: SessionConfig,
    next_id: Callable[[str, PositionSide], str],
) -> PositionSession | None:
    if open_time is None:
        # Only dust orders: the book never left the flat band.
        logger.debug(
            "Dropping %d dust order(s) on %s:%s", len(pending), symbol, position_side.value,
        )
        return None
    return finalize_hedge_session(
        pending, next_id(symbol, position_side), symbol, position_side,
        open_time, end_time, config,
    )


def calculate_hedge_sessions(
    executions: Sequence[Execution],
    config: SessionConfig | None = None,
) -> list[PositionSession]:
    """Reconstruct position sessions for hedge-mode (dual book) venues.

    Parameters
    ----------
    executions:
        Fills for one account in any order. Not mutated.
    config:
        Calculator configuration (tolerance, time gap, fee units).
        Defaults to ``SessionConfig()``.

    Returns
    -------
    list[PositionSession]
        Newest first by close time (open time for open sessions).
    """
    config = config or SessionConfig()

    fills = chronological(
        (e for e in executions if is_trade_fill(e)), key=lambda e: e.timestamp,
    )
    books = group_by(fills, lambda e: (e.symbol, resolve_position_side(e)))

    seq = 0

    def next_id(symbol: str, position_side: PositionSide) -> str:
        nonlocal seq
        session_id = f"{symbol}-{position_side.value}-{seq}"
        seq += 1
        return session_id

    sessions: list[PositionSession] = []
    for (symbol, position_side), book_fills in books.items():
        orders = aggregate_orders(book_fills, position_side)
        sessions.extend(_sessions_for_book(orders, symbol, position_side, config, next_id))

    logger.debug("Hedge calculator: %d fills in %d books -> %d sessions", len(fills), len(books), len(sessions))
    return sort_newest_first(sessions)
