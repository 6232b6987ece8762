"""
Persist and load executions (SQLite). Timestamps in UTC.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from session_core.contracts import Execution, PositionSide, Side


def _utc_ts(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


class ExecutionStore:
    """SQLite-backed execution storage. One file per path, rows keyed by (exchange, exec_id)."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _conn(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._path))

    def _init_schema(self) -> None:
        with self._conn() as c:
            c.execute(
                """
                CREATE TABLE IF NOT EXISTS executions (
                    exchange TEXT NOT NULL,
                    exec_id TEXT NOT NULL,
                    order_id TEXT NOT NULL,
                    symbol TEXT NOT NULL,
                    side TEXT NOT NULL,
                    qty REAL NOT NULL,
                    price REAL NOT NULL,
                    cost REAL NOT NULL,
                    commission REAL NOT NULL,
                    ts_utc TEXT NOT NULL,
                    text TEXT NOT NULL,
                    exec_type TEXT NOT NULL,
                    position_side TEXT,
                    realized_pnl REAL,
                    PRIMARY KEY (exchange, exec_id)
                )
                """
            )

    def write_executions(self, exchange: str, executions: Sequence[Execution]) -> int:
        """Upsert executions (by exchange, exec_id). Returns rows written."""
        exchange = exchange.lower()
        with self._conn() as c:
            for e in executions:
                c.execute(
                    """
                    INSERT OR REPLACE INTO executions (
                        exchange, exec_id, order_id, symbol, side, qty, price, cost,
                        commission, ts_utc, text, exec_type, position_side, realized_pnl
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        exchange, e.exec_id, e.order_id, e.symbol, e.side.value,
                        e.qty, e.price, e.cost, e.commission,
                        _utc_ts(e.timestamp).isoformat(), e.text, e.exec_type,
                        e.position_side.value if e.position_side else None,
                        e.realized_pnl,
                    ),
                )
        return len(executions)

    def get_executions(
        self,
        exchange: str,
        *,
        symbol: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> list[Execution]:
        """Return executions in ascending time order (insertion order on ties)."""
        with self._conn() as c:
            q = (
                "SELECT exec_id, order_id, symbol, side, qty, price, cost, commission, "
                "ts_utc, text, exec_type, position_side, realized_pnl "
                "FROM executions WHERE exchange = ?"
            )
            params: list = [exchange.lower()]
            if symbol is not None:
                q += " AND symbol = ?"
                params.append(symbol)
            if since is not None:
                q += " AND ts_utc >= ?"
                params.append(_utc_ts(since).isoformat())
            if until is not None:
                q += " AND ts_utc <= ?"
                params.append(_utc_ts(until).isoformat())
            q += " ORDER BY ts_utc ASC, rowid ASC"
            rows = c.execute(q, params).fetchall()
        return [self._row_to_execution(r) for r in rows]

    def count_executions(self, exchange: str, symbol: str | None = None) -> int:
        with self._conn() as c:
            q = "SELECT COUNT(*) FROM executions WHERE exchange = ?"
            params: list = [exchange.lower()]
            if symbol is not None:
                q += " AND symbol = ?"
                params.append(symbol)
            row = c.execute(q, params).fetchone()
        return row[0] if row else 0

    def exchanges(self) -> list[str]:
        """Exchanges with at least one stored execution."""
        with self._conn() as c:
            rows = c.execute("SELECT DISTINCT exchange FROM executions ORDER BY exchange").fetchall()
        return [r[0] for r in rows]

    def _row_to_execution(self, row: tuple) -> Execution:
        (exec_id, order_id, symbol, side, qty, price, cost, commission,
         ts_utc, text, exec_type, position_side, realized_pnl) = row
        # SQLite has no native datetime; we store ISO strings
        ts = datetime.fromisoformat(ts_utc.replace("Z", "+00:00"))
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return Execution(
            exec_id=exec_id,
            order_id=order_id,
            symbol=symbol,
            side=Side(side),
            qty=qty,
            price=price,
            cost=cost,
            commission=commission,
            timestamp=ts,
            text=text,
            exec_type=exec_type,
            position_side=PositionSide(position_side) if position_side else None,
            realized_pnl=realized_pnl,
        )
