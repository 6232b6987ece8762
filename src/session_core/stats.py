"""
Session statistics: simple reductions over computed PositionSessions.

Wins and losses are counted on closed sessions' net PnL (after fees).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Sequence

from session_core.contracts import PositionSession


@dataclass(frozen=True)
class SymbolStats:
    symbol: str
    sessions: int
    closed: int
    net_pnl: float


@dataclass(frozen=True)
class SessionStats:
    total_sessions: int
    closed_sessions: int
    open_sessions: int
    winning_sessions: int
    losing_sessions: int
    gross_profit: float
    gross_loss: float
    total_realized_pnl: float
    total_fees: float
    total_net_pnl: float
    avg_closed_duration: timedelta
    by_symbol: list[SymbolStats] = field(default_factory=list)

    @property
    def win_rate(self) -> float:
        """Winning share of decided (non-breakeven) closed sessions, in %."""
        decided = self.winning_sessions + self.losing_sessions
        if decided == 0:
            return 0.0
        return self.winning_sessions / decided * 100

    @property
    def profit_factor(self) -> float:
        if self.gross_loss > 0:
            return self.gross_profit / self.gross_loss
        return math.inf if self.gross_profit > 0 else 0.0


def summarize_sessions(sessions: Sequence[PositionSession]) -> SessionStats:
    closed = [s for s in sessions if s.is_closed]
    wins = [s.net_pnl for s in closed if s.net_pnl > 0]
    losses = [s.net_pnl for s in closed if s.net_pnl < 0]

    if closed:
        total_seconds = sum(s.duration_seconds for s in closed)
        avg_duration = timedelta(seconds=total_seconds / len(closed))
    else:
        avg_duration = timedelta(0)

    per_symbol: dict[str, list[PositionSession]] = {}
    for s in sessions:
        per_symbol.setdefault(s.symbol, []).append(s)
    by_symbol = [
        SymbolStats(
            symbol=symbol,
            sessions=len(group),
            closed=sum(1 for s in group if s.is_closed),
            net_pnl=sum(s.net_pnl for s in group),
        )
        for symbol, group in sorted(per_symbol.items())
    ]

    return SessionStats(
        total_sessions=len(sessions),
        closed_sessions=len(closed),
        open_sessions=len(sessions) - len(closed),
        winning_sessions=len(wins),
        losing_sessions=len(losses),
        gross_profit=sum(wins),
        gross_loss=abs(sum(losses)),
        total_realized_pnl=sum(s.realized_pnl for s in closed),
        total_fees=sum(s.total_fees for s in sessions),
        total_net_pnl=sum(s.net_pnl for s in sessions),
        avg_closed_duration=avg_duration,
        by_symbol=by_symbol,
    )
