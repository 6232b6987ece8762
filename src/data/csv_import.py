"""
Read exported executions CSV files into Execution records.

Every venue is exported with the BitMEX execution columns:
execID, orderID, symbol, side, lastQty, lastPx, execType, ordType,
ordStatus, execCost, execComm, timestamp, text.
"""

import csv
import logging
from pathlib import Path

from session_core.contracts import Execution

from data.normalizer import normalize_bitmex

logger = logging.getLogger("sessions.data")

EXECUTION_COLUMNS = [
    "execID",
    "orderID",
    "symbol",
    "side",
    "lastQty",
    "lastPx",
    "execType",
    "ordType",
    "ordStatus",
    "execCost",
    "execComm",
    "timestamp",
    "text",
]


def read_executions_csv(path: str | Path) -> list[Execution]:
    """Load executions from *path* in file order. Rows without a side are skipped."""
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Executions file not found: {csv_path}")

    out: list[Execution] = []
    with open(csv_path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = {"symbol", "side", "timestamp"} - set(reader.fieldnames or [])
        if missing:
            raise ValueError(f"{csv_path.name} is missing required columns: {sorted(missing)}")
        for row in reader:
            execution = normalize_bitmex(row)
            if execution is not None:
                out.append(execution)

    logger.info("Read %d executions from %s", len(out), csv_path)
    return out


def write_executions_csv(path: str | Path, executions: list[Execution]) -> None:
    """Write executions in the export column layout."""
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=EXECUTION_COLUMNS)
        writer.writeheader()
        for e in executions:
            writer.writerow({
                "execID": e.exec_id,
                "orderID": e.order_id,
                "symbol": e.symbol,
                "side": e.side.value.capitalize(),
                "lastQty": e.qty,
                "lastPx": e.price,
                "execType": e.exec_type,
                "ordType": "",
                "ordStatus": "Filled",
                "execCost": e.cost,
                "execComm": e.commission,
                "timestamp": e.timestamp.isoformat(),
                "text": e.text,
            })
