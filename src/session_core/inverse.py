"""
Inverse-contract session calculator (BitMEX-style, single position book).

Walks each symbol's fills in time order with a signed running position
(buy +qty, sell -qty). A session opens when the position leaves exactly 0
and closes when it returns to exactly 0. A fill that reverses the sign
(flip) is split: the part that flattens the old position closes the old
session, the overflow seeds a new session on the opposite side.

PnL uses inverse-contract math on price reciprocals:
    long:  qty * (1/entry - 1/exit)
    short: qty * (1/exit - 1/entry)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from config.session_config import SessionConfig
from session_core.contracts import (
    Execution,
    PositionSession,
    SessionSide,
    SessionStatus,
    SessionTrade,
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

FEE_CURRENCY = "XBT"


@dataclass
class SessionAccumulator:
    """Running totals for one inverse-contract session."""

    side: SessionSide
    open_time: datetime
    total_bought: float = 0.0
    total_sold: float = 0.0
    buy_cost: float = 0.0
    sell_cost: float = 0.0
    commission: float = 0.0
    max_position: float = 0.0
    executions: list[Execution] = field(default_factory=list)

    @classmethod
    def opened_by(cls, execution: Execution) -> SessionAccumulator:
        """Empty accumulator for a session opened by *execution*."""
        side = SessionSide.LONG if execution.is_buy else SessionSide.SHORT
        return cls(side=side, open_time=execution.timestamp)

    @classmethod
    def seeded_with_overflow(cls, execution: Execution, overflow: float) -> SessionAccumulator:
        """New session holding only the overflow of a flipping fill.

        The whole commission of the fill is attributed here as well as to the
        session it closed.
        """
        acc = cls.opened_by(execution)
        if execution.is_buy:
            acc.total_bought = overflow
            acc.buy_cost = overflow * execution.price
        else:
            acc.total_sold = overflow
            acc.sell_cost = overflow * execution.price
        acc.commission = execution.commission
        acc.max_position = overflow
        acc.executions = [execution]
        return acc

    def add(self, execution: Execution) -> None:
        if execution.is_buy:
            self.total_bought += execution.qty
            self.buy_cost += execution.qty * execution.price
        else:
            self.total_sold += execution.qty
            self.sell_cost += execution.qty * execution.price
        self.commission += execution.commission
        self.executions.append(execution)

    def observe(self, position: float) -> None:
        self.max_position = max(self.max_position, abs(position))

    def remove_overflow(self, execution: Execution, overflow: float) -> None:
        """Drop the part of a flipping fill that belongs to the next session."""
        if execution.is_buy:
            self.total_bought -= overflow
            self.buy_cost -= overflow * execution.price
        else:
            self.total_sold -= overflow
            self.sell_cost -= overflow * execution.price


def _avg(cost: float, qty: float) -> float:
    return cost / qty if qty > 0 else 0.0


def finalize_inverse_session(
    acc: SessionAccumulator,
    session_id: str,
    symbol: str,
    end_time: datetime,
    *,
    closed: bool,
    minor_units_per_major: float,
) -> PositionSession:
    """Turn an accumulator into a PositionSession.

    For open sessions *end_time* only anchors the duration; exit price and
    realized PnL stay 0.

    A session closed by a flip never counts the overflow in ``max_size``.
    Session histories computed with the overflow included report a larger
    peak for those sessions.
    """
    if acc.side == SessionSide.LONG:
        avg_entry = _avg(acc.buy_cost, acc.total_bought)
        avg_exit = _avg(acc.sell_cost, acc.total_sold)
    else:
        avg_entry = _avg(acc.sell_cost, acc.total_sold)
        avg_exit = _avg(acc.buy_cost, acc.total_bought)

    realized = 0.0
    closed_qty = min(acc.total_bought, acc.total_sold)
    if closed and closed_qty > 0 and avg_entry > 0 and avg_exit > 0:
        if acc.side == SessionSide.LONG:
            realized = closed_qty * (1 / avg_entry - 1 / avg_exit)
        else:
            realized = closed_qty * (1 / avg_exit - 1 / avg_entry)

    fees = fees_in_major_units(acc.commission, minor_units_per_major)
    display = format_symbol(symbol, "bitmex")
    trades = [SessionTrade.from_execution(e, display, FEE_CURRENCY) for e in acc.executions]

    return PositionSession(
        id=session_id,
        symbol=symbol,
        display_symbol=display,
        side=acc.side,
        open_time=acc.open_time,
        close_time=end_time if closed else None,
        duration=end_time - acc.open_time,
        max_size=acc.max_position,
        total_bought=acc.total_bought,
        total_sold=acc.total_sold,
        avg_entry_price=avg_entry,
        avg_exit_price=avg_exit if closed else 0.0,
        realized_pnl=realized,
        total_fees=fees,
        net_pnl=realized - fees if closed else -fees,
        trade_count=len(trades),
        trades=trades,
        status=SessionStatus.CLOSED if closed else SessionStatus.OPEN,
    )


def calculate_inverse_sessions(
    executions: Sequence[Execution],
    config: SessionConfig | None = None,
) -> list[PositionSession]:
    """Reconstruct position sessions for inverse contracts.

    Parameters
    ----------
    executions:
        Fills for one account in any order. Not mutated.
    config:
        Calculator configuration. Defaults to ``SessionConfig()``.

    Returns
    -------
    list[PositionSession]
        Newest first by close time (open time for open sessions).
    """
    config = config or SessionConfig()
    divisor = config.fees.minor_units_per_major

    fills = chronological(
        (e for e in executions if is_trade_fill(e, require_order_id=True)),
        key=lambda e: e.timestamp,
    )
    by_symbol = group_by(fills, lambda e: e.symbol)

    sessions: list[PositionSession] = []
    seq = 0

    for symbol, ordered in by_symbol.items():
        position = 0.0
        acc: SessionAccumulator | None = None

        for execution in ordered:
            before = position
            position = before + execution.signed_qty

            if acc is None:
                acc = SessionAccumulator.opened_by(execution)
            acc.add(execution)

            if position == 0:
                sessions.append(finalize_inverse_session(
                    acc, f"{symbol}-{seq}", symbol, execution.timestamp,
                    closed=True, minor_units_per_major=divisor,
                ))
                seq += 1
                acc = None
            elif before != 0 and (before > 0) != (position > 0):
                overflow = abs(position)
                acc.remove_overflow(execution, overflow)
                sessions.append(finalize_inverse_session(
                    acc, f"{symbol}-{seq}", symbol, execution.timestamp,
                    closed=True, minor_units_per_major=divisor,
                ))
                seq += 1
                acc = SessionAccumulator.seeded_with_overflow(execution, overflow)
            else:
                acc.observe(position)

        if acc is not None and position != 0:
            sessions.append(finalize_inverse_session(
                acc, f"{symbol}-{seq}", symbol, ordered[-1].timestamp,
                closed=False, minor_units_per_major=divisor,
            ))
            seq += 1

    logger.debug("Inverse calculator: %d fills -> %d sessions", len(fills), len(sessions))
    return sort_newest_first(sessions)
