"""
Execution normalizer: exchange fill payloads -> session_core Execution.

Each venue reports fills in its own shape. The mappers here turn one payload
dict (as returned by the venue's REST API, values often strings) into the
common Execution schema:

    cost        contract-value units (BitMEX: satoshis; linear venues: quote * 1e8)
    commission  fee-currency minor units (1e8 per major unit)

Hedge-mode venues also get the typed position_side / realized_pnl fields and
an annotation text in the exported CSV format, so records survive a round
trip through the CSV file.

Unparsable numbers become 0 (the calculators then drop the fill as a
non-trade); an unrecognized side makes the mapper return None; an
unparsable timestamp raises ValueError.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from session_core.annotations import parse_position_side
from session_core.contracts import Execution, PositionSide, Side
from session_core.executions import TRADE_EXEC_TYPE

logger = logging.getLogger("sessions.data")

MINOR_UNITS = 100_000_000

# Bybit: 0 one-way, 1 hedge buy side, 2 hedge sell side
_BYBIT_POSITION_IDX = {
    "0": PositionSide.BOTH,
    "1": PositionSide.LONG,
    "2": PositionSide.SHORT,
}


def _to_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _parse_side(value: Any) -> Side | None:
    text = str(value or "").strip().lower()
    if text == "buy":
        return Side.BUY
    if text == "sell":
        return Side.SELL
    return None


def parse_timestamp(value: Any) -> datetime:
    """Epoch milliseconds (int or digit string) or ISO-8601 -> aware UTC datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    text = str(value or "").strip()
    if text.isdigit():
        return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
    try:
        ts = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"Unparsable execution timestamp: {value!r}") from exc
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _position_side_from(value: Any) -> PositionSide:
    tag = str(value or "").strip().upper()
    if tag == "LONG":
        return PositionSide.LONG
    if tag == "SHORT":
        return PositionSide.SHORT
    return PositionSide.BOTH


def normalize_bitmex(row: Mapping[str, Any]) -> Execution | None:
    """BitMEX execution (also the column layout of the exported executions CSV).

    Hedge hints already present in ``text`` are kept as-is and resolved by
    the calculators.
    """
    side = _parse_side(row.get("side"))
    if side is None:
        return None
    return Execution(
        exec_id=str(row.get("execID") or ""),
        order_id=str(row.get("orderID") or ""),
        symbol=str(row.get("symbol") or ""),
        side=side,
        qty=_to_float(row.get("lastQty")),
        price=_to_float(row.get("lastPx")),
        cost=_to_float(row.get("execCost")),
        commission=_to_float(row.get("execComm")),
        timestamp=parse_timestamp(row.get("timestamp")),
        text=str(row.get("text") or ""),
        exec_type=str(row.get("execType") or TRADE_EXEC_TYPE),
    )


def normalize_binance(row: Mapping[str, Any]) -> Execution | None:
    """Binance USDⓈ-M futures ``userTrades`` record."""
    side = _parse_side(row.get("side"))
    if side is None:
        return None
    qty = _to_float(row.get("qty"))
    price = _to_float(row.get("price"))
    quote_qty = _to_float(row.get("quoteQty")) or qty * price
    position_side = _position_side_from(row.get("positionSide"))
    realized = _to_float(row.get("realizedPnl"))
    return Execution(
        exec_id=str(row.get("id") or ""),
        order_id=str(row.get("orderId") or ""),
        symbol=str(row.get("symbol") or ""),
        side=side,
        qty=qty,
        price=price,
        cost=round(quote_qty * MINOR_UNITS),
        commission=round(abs(_to_float(row.get("commission"))) * MINOR_UNITS),
        timestamp=parse_timestamp(row.get("time")),
        text=f"positionSide:{position_side.value}|realizedPnl:{realized:.8f}",
        position_side=position_side,
        realized_pnl=realized,
    )


def normalize_okx(row: Mapping[str, Any]) -> Execution | None:
    """OKX ``/api/v5/trade/fills-history`` record."""
    side = _parse_side(row.get("side"))
    if side is None:
        return None
    qty = _to_float(row.get("fillSz"))
    price = _to_float(row.get("fillPx"))
    pos_side = str(row.get("posSide") or "")
    realized = _to_float(row.get("fillPnl"))
    return Execution(
        exec_id=str(row.get("tradeId") or row.get("billId") or ""),
        order_id=str(row.get("ordId") or ""),
        symbol=str(row.get("instId") or ""),
        side=side,
        qty=qty,
        price=price,
        cost=round(qty * price * MINOR_UNITS),
        commission=round(abs(_to_float(row.get("fee"))) * MINOR_UNITS),
        timestamp=parse_timestamp(row.get("ts")),
        text=f"posSide:{pos_side}|execType:{row.get('execType', '')}|realizedPnl:{realized:.8f}",
        position_side=parse_position_side(f"posSide:{pos_side}"),
        realized_pnl=realized,
    )


def normalize_bybit(row: Mapping[str, Any]) -> Execution | None:
    """Bybit v5 ``/v5/execution/list`` record (linear category)."""
    side = _parse_side(row.get("side"))
    if side is None:
        return None
    position_side = _BYBIT_POSITION_IDX.get(str(row.get("positionIdx", "0")), PositionSide.BOTH)
    realized = _to_float(row.get("closedPnl"))
    return Execution(
        exec_id=str(row.get("execId") or ""),
        order_id=str(row.get("orderId") or ""),
        symbol=str(row.get("symbol") or ""),
        side=side,
        qty=_to_float(row.get("execQty")),
        price=_to_float(row.get("execPrice")),
        cost=round(_to_float(row.get("execValue")) * MINOR_UNITS),
        commission=round(_to_float(row.get("execFee")) * MINOR_UNITS),
        timestamp=parse_timestamp(row.get("execTime")),
        text=f"positionSide:{position_side.value}|realizedPnl:{realized:.8f}",
        exec_type=str(row.get("execType") or TRADE_EXEC_TYPE),
        position_side=position_side,
        realized_pnl=realized,
    )


_NORMALIZERS: dict[str, Callable[[Mapping[str, Any]], Execution | None]] = {
    "bitmex": normalize_bitmex,
    "binance": normalize_binance,
    "okx": normalize_okx,
    "bybit": normalize_bybit,
}


def supported_exchanges() -> list[str]:
    return sorted(_NORMALIZERS)


def normalize(exchange: str, rows: Iterable[Mapping[str, Any]]) -> list[Execution]:
    """Normalize a batch of payloads from *exchange*, skipping unusable ones."""
    mapper = _NORMALIZERS.get(exchange.lower())
    if mapper is None:
        raise ValueError(
            f"Unsupported exchange '{exchange}'. Supported: {supported_exchanges()}"
        )
    out: list[Execution] = []
    skipped = 0
    for row in rows:
        execution = mapper(row)
        if execution is None:
            skipped += 1
            continue
        out.append(execution)
    if skipped:
        logger.debug("Skipped %d %s record(s) without a buy/sell side", skipped, exchange)
    return out
