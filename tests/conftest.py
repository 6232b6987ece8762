"""Pytest fixtures: execution builders and canned scenarios for deterministic tests."""

from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Callable

import pytest

from session_core.contracts import Execution, PositionSide, Side

BASE_TS = datetime(2024, 1, 2, 9, 30, 0, tzinfo=timezone.utc)


def at(minutes: float = 0) -> datetime:
    return BASE_TS + timedelta(minutes=minutes)


@pytest.fixture
def make_execution() -> Callable[..., Execution]:
    """Factory for Execution records with sequential ids.

    ``order_id`` defaults to a fresh id per call (one fill per order); pass
    the same order_id to model partial fills.
    """
    ids = count(1)

    def _make(
        side: str,
        qty: float,
        price: float,
        *,
        minutes: float = 0,
        symbol: str = "XBTUSD",
        order_id: str | None = None,
        commission: float = 0.0,
        exec_type: str = "Trade",
        text: str = "",
        position_side: PositionSide | None = None,
        realized_pnl: float | None = None,
        timestamp: datetime | None = None,
    ) -> Execution:
        n = next(ids)
        return Execution(
            exec_id=f"e{n}",
            order_id=f"o{n}" if order_id is None else order_id,
            symbol=symbol,
            side=Side(side),
            qty=qty,
            price=price,
            cost=qty * price,
            commission=commission,
            timestamp=timestamp if timestamp is not None else at(minutes),
            text=text,
            exec_type=exec_type,
            position_side=position_side,
            realized_pnl=realized_pnl,
        )

    return _make


@pytest.fixture
def round_trip(make_execution) -> list[Execution]:
    """Buy 100 @ 50000, sell 100 @ 51000 ten minutes later."""
    return [
        make_execution("buy", 100, 50_000, minutes=0, commission=5_000),
        make_execution("sell", 100, 51_000, minutes=10, commission=5_000),
    ]


@pytest.fixture
def flip(make_execution) -> list[Execution]:
    """Buy 5 @ 100, then sell 12 @ 110: closes the long and opens a 7-lot short."""
    return [
        make_execution("buy", 5, 100, minutes=0, commission=100),
        make_execution("sell", 12, 110, minutes=5, commission=1_200),
    ]


@pytest.fixture
def hedged_books(make_execution) -> list[Execution]:
    """BTCUSDT long opened and left open; a short opened and closed alongside it."""
    return [
        make_execution("buy", 1, 100, minutes=0, symbol="BTCUSDT", position_side=PositionSide.LONG),
        make_execution("sell", 1, 100, minutes=1, symbol="BTCUSDT", position_side=PositionSide.SHORT),
        make_execution(
            "buy", 1, 95, minutes=2, symbol="BTCUSDT",
            position_side=PositionSide.SHORT, realized_pnl=5.0,
        ),
    ]


@pytest.fixture
def gapped_round_trips(make_execution) -> list[Execution]:
    """Two LONG round trips three hours apart."""
    return [
        make_execution("buy", 1, 100, minutes=0, symbol="BTCUSDT", position_side=PositionSide.LONG),
        make_execution(
            "sell", 1, 101, minutes=10, symbol="BTCUSDT",
            position_side=PositionSide.LONG, realized_pnl=1.0,
        ),
        make_execution("buy", 1, 102, minutes=180, symbol="BTCUSDT", position_side=PositionSide.LONG),
        make_execution(
            "sell", 1, 100, minutes=190, symbol="BTCUSDT",
            position_side=PositionSide.LONG, realized_pnl=-2.0,
        ),
    ]
