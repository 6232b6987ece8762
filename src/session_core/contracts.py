"""
Data contracts for session-core: Execution, AggregatedOrder, PositionSession.

session-core consumes Execution records (already normalized from exchange
payloads) and produces PositionSession records. No I/O; these are plain
dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum


class ExecutionOrderError(ValueError):
    """Raised when execution timestamps cannot be put in chronological order."""


class Side(str, Enum):
    """Fill direction as reported by the venue."""

    BUY = "buy"
    SELL = "sell"


class PositionSide(str, Enum):
    """Hedge-mode book an execution belongs to. BOTH = one-way / untagged."""

    LONG = "LONG"
    SHORT = "SHORT"
    BOTH = "BOTH"


class SessionSide(str, Enum):
    LONG = "long"
    SHORT = "short"


class SessionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class CalculatorMode(str, Enum):
    """Which state machine handles a batch of executions."""

    INVERSE = "inverse"
    HEDGE = "hedge"


@dataclass(frozen=True)
class Execution:
    """One fill at a venue.

    ``cost`` is in contract-value units and ``commission`` in fee-currency
    minor units (1e8 per major unit). ``position_side`` and ``realized_pnl``
    are filled in by normalizers that know them; when absent the values are
    recovered from ``text`` (see session_core.annotations).
    """

    exec_id: str
    order_id: str
    symbol: str
    side: Side
    qty: float
    price: float
    cost: float
    commission: float
    timestamp: datetime
    text: str = ""
    exec_type: str = "Trade"
    position_side: PositionSide | None = None
    realized_pnl: float | None = None

    @property
    def is_buy(self) -> bool:
        return self.side == Side.BUY

    @property
    def signed_qty(self) -> float:
        """+qty for buys, -qty for sells."""
        return self.qty if self.is_buy else -self.qty


@dataclass
class AggregatedOrder:
    """All executions of one order within a (symbol, position side) book."""

    order_id: str
    symbol: str
    side: Side
    position_side: PositionSide
    timestamp: datetime
    total_qty: float = 0.0
    total_cost: float = 0.0
    total_commission: float = 0.0
    realized_pnl: float = 0.0
    executions: list[Execution] = field(default_factory=list)

    @property
    def avg_price(self) -> float:
        """Cost-weighted average fill price."""
        return self.total_cost / self.total_qty if self.total_qty > 0 else 0.0

    def add(self, execution: Execution, realized_pnl: float) -> None:
        self.total_qty += execution.qty
        self.total_cost += execution.qty * execution.price
        self.total_commission += execution.commission
        self.realized_pnl += realized_pnl
        self.executions.append(execution)
        if execution.timestamp < self.timestamp:
            self.timestamp = execution.timestamp


@dataclass(frozen=True)
class SessionTrade:
    """A single execution as carried on a PositionSession."""

    id: str
    timestamp: datetime
    symbol: str
    display_symbol: str
    side: Side
    price: float
    qty: float
    cost: float
    fee: float
    fee_currency: str
    order_id: str

    @classmethod
    def from_execution(
        cls,
        execution: Execution,
        display_symbol: str,
        fee_currency: str,
    ) -> SessionTrade:
        return cls(
            id=execution.exec_id,
            timestamp=execution.timestamp,
            symbol=execution.symbol,
            display_symbol=display_symbol,
            side=execution.side,
            price=execution.price,
            qty=execution.qty,
            cost=abs(execution.cost),
            fee=execution.commission,
            fee_currency=fee_currency,
            order_id=execution.order_id,
        )


@dataclass(frozen=True)
class PositionSession:
    """A contiguous interval of non-zero net exposure in one symbol.

    ``avg_exit_price`` and ``realized_pnl`` are 0 while the session is open;
    ``close_time`` is None while open. ``total_fees`` is in major currency
    units and never negative.
    """

    id: str
    symbol: str
    display_symbol: str
    side: SessionSide
    open_time: datetime
    close_time: datetime | None
    duration: timedelta
    max_size: float
    total_bought: float
    total_sold: float
    avg_entry_price: float
    avg_exit_price: float
    realized_pnl: float
    total_fees: float
    net_pnl: float
    trade_count: int
    trades: list[SessionTrade]
    status: SessionStatus

    @property
    def is_closed(self) -> bool:
        return self.status == SessionStatus.CLOSED

    @property
    def duration_seconds(self) -> float:
        return self.duration.total_seconds()

    @property
    def sort_time(self) -> datetime:
        """Close time for closed sessions, open time otherwise."""
        return self.close_time if self.close_time is not None else self.open_time


def sort_newest_first(sessions: list[PositionSession]) -> list[PositionSession]:
    """Order sessions by close (or open) time, most recent first.

    Ties keep their generation order.
    """
    try:
        return sorted(sessions, key=lambda s: s.sort_time, reverse=True)
    except TypeError as exc:
        raise ExecutionOrderError(f"Session times are not comparable: {exc}") from exc
