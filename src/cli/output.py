"""
Human-readable session output for the terminal.

Every CLI command uses these formatters. Journal receives the same data.
"""

from __future__ import annotations

import math
from datetime import timedelta

from session_core.contracts import PositionSession
from session_core.stats import SessionStats


def _fmt_duration(duration: timedelta) -> str:
    total = int(duration.total_seconds())
    days, rem = divmod(total, 86_400)
    hours, rem = divmod(rem, 3_600)
    minutes = rem // 60
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _fee_currency(session: PositionSession) -> str:
    return session.trades[0].fee_currency if session.trades else ""


def format_session_line(session: PositionSession) -> str:
    """One-line summary: symbol, side, status, size, prices, PnL."""
    ccy = _fee_currency(session)
    exit_px = f"{session.avg_exit_price:.2f}" if session.is_closed else "-"
    return (
        f"{session.display_symbol:<10} {session.side.value:<5} {session.status.value:<6} "
        f"max {session.max_size:>12,.4f}  entry {session.avg_entry_price:>12.2f}  exit {exit_px:>12}  "
        f"net {session.net_pnl:+.8f} {ccy}  ({session.trade_count} fills, {_fmt_duration(session.duration)})"
    )


def format_session_detail(session: PositionSession) -> str:
    """Multi-line view of one session including its fills."""
    ccy = _fee_currency(session)
    close = session.close_time.isoformat() if session.close_time else "open"
    lines = [
        f"--- Session {session.id}: {session.display_symbol} {session.side.value} ({session.status.value}) ---",
        f"Period       : {session.open_time.isoformat()} -> {close}",
        f"Bought / sold: {session.total_bought:,.4f} / {session.total_sold:,.4f}  (max {session.max_size:,.4f})",
        f"Entry / exit : {session.avg_entry_price:.2f} / {session.avg_exit_price:.2f}",
        f"Realized PnL : {session.realized_pnl:+.8f} {ccy}",
        f"Fees         : {session.total_fees:.8f} {ccy}",
        f"Net PnL      : {session.net_pnl:+.8f} {ccy}",
    ]
    for t in session.trades:
        lines.append(f"  {t.timestamp.isoformat()}  {t.side.value:<4} {t.qty:,.4f} @ {t.price:.2f}  order {t.order_id}")
    lines.append("---")
    return "\n".join(lines)


def format_session_list(sessions: list[PositionSession]) -> str:
    if not sessions:
        return "No position sessions."
    return "\n".join(format_session_line(s) for s in sessions)


def format_stats(stats: SessionStats, exchange: str) -> str:
    """Aggregate session statistics with a per-symbol breakdown."""
    pf = "inf" if math.isinf(stats.profit_factor) else f"{stats.profit_factor:.2f}"
    lines = [
        f"=== Sessions: {exchange} ===",
        f"Sessions     : {stats.total_sessions} ({stats.closed_sessions} closed, {stats.open_sessions} open)",
        f"Win / loss   : {stats.winning_sessions} / {stats.losing_sessions}  (win rate {stats.win_rate:.1f}%)",
        f"Profit factor: {pf}",
        f"Realized PnL : {stats.total_realized_pnl:+.8f}",
        f"Fees         : {stats.total_fees:.8f}",
        f"Net PnL      : {stats.total_net_pnl:+.8f}",
        f"Avg duration : {_fmt_duration(stats.avg_closed_duration)}",
    ]
    if stats.by_symbol:
        lines.append("")
        for s in stats.by_symbol:
            lines.append(f"  {s.symbol:<16} {s.sessions:>4} sessions ({s.closed} closed)  net {s.net_pnl:+.8f}")
    lines.append("===")
    return "\n".join(lines)
