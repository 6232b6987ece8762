"""
Annotation extraction: position-side and realized-PnL hints in free text.

Hedge-mode venues export these values inside the execution's text field
(e.g. ``positionSide:LONG|realizedPnl:12.5`` for Binance,
``posSide:short|execType:T`` for OKX). Extraction happens here so the state
machines only ever see typed values.

Defaults: absent or unrecognized side -> PositionSide.BOTH, absent or
unparsable PnL -> 0.0. Nothing in this module raises on bad text.
"""

from __future__ import annotations

import math
import re

from session_core.contracts import Execution, PositionSide

_POSITION_SIDE_RE = re.compile(r"(?:positionSide|posSide)[:\s]*(\w+)", re.IGNORECASE)
_REALIZED_PNL_RE = re.compile(r"realizedPnl[:\s]*(-?[\d.]+)", re.IGNORECASE)


def parse_position_side(text: str | None) -> PositionSide:
    """Return LONG/SHORT when the text carries a recognized tag, else BOTH."""
    if not text:
        return PositionSide.BOTH
    match = _POSITION_SIDE_RE.search(text)
    if match:
        tag = match.group(1).upper()
        if tag == "LONG":
            return PositionSide.LONG
        if tag == "SHORT":
            return PositionSide.SHORT
    return PositionSide.BOTH


def parse_realized_pnl(text: str | None) -> float:
    """Return the realizedPnl value embedded in text, 0.0 when missing or bad."""
    if not text:
        return 0.0
    match = _REALIZED_PNL_RE.search(text)
    if not match:
        return 0.0
    try:
        value = float(match.group(1))
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def resolve_position_side(execution: Execution) -> PositionSide:
    """Typed field first, annotation text second."""
    if execution.position_side is not None:
        return execution.position_side
    return parse_position_side(execution.text)


def resolve_realized_pnl(execution: Execution) -> float:
    """Typed field first, annotation text second."""
    if execution.realized_pnl is not None:
        return execution.realized_pnl
    return parse_realized_pnl(execution.text)
