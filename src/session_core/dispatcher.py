"""
Dispatcher: route an execution batch to the inverse or hedge-mode calculator.

Classification happens once per call: a hedge exchange hint or a hedge-shaped
first symbol selects the hedge calculator, anything else the inverse one.
"""

from __future__ import annotations

import logging
from typing import Sequence

from config.session_config import SessionConfig
from session_core.contracts import CalculatorMode, Execution, PositionSession
from session_core.hedge import calculate_hedge_sessions
from session_core.inverse import calculate_inverse_sessions
from session_core.symbols import is_hedge_mode_symbol

logger = logging.getLogger("sessions.core")


def detect_mode(
    executions: Sequence[Execution],
    exchange: str | None = None,
    config: SessionConfig | None = None,
) -> CalculatorMode:
    """Decide which calculator handles *executions*.

    A hedge exchange hint always selects the hedge calculator. An inverse
    exchange hint only switches off the stablecoin-suffix heuristic, so
    ``XBTUSDT`` on BitMEX stays inverse while a ``-SWAP`` or ``_PERP`` symbol
    still routes to the hedge calculator.
    """
    config = config or SessionConfig()
    dispatch = config.dispatch
    suffixes: Sequence[str] = dispatch.hedge_symbol_suffixes

    if exchange:
        hint = exchange.strip().lower()
        if hint in dispatch.hedge_exchanges:
            return CalculatorMode.HEDGE
        if hint in dispatch.inverse_exchanges:
            suffixes = ()
        else:
            logger.warning("Unknown exchange hint %r, falling back to symbol detection", exchange)

    first_symbol = executions[0].symbol if executions else ""
    if is_hedge_mode_symbol(first_symbol, markers=dispatch.hedge_symbol_markers, suffixes=suffixes):
        return CalculatorMode.HEDGE
    return CalculatorMode.INVERSE


def calculate_sessions(
    executions: Sequence[Execution],
    exchange: str | None = None,
    config: SessionConfig | None = None,
) -> list[PositionSession]:
    """Reconstruct position sessions from a complete execution history.

    Parameters
    ----------
    executions:
        Normalized fills, any order. The caller's sequence is never mutated.
    exchange:
        Optional venue id (``bitmex``, ``binance``, ``okx``, ``bybit``).
    config:
        Calculator configuration. Defaults to ``SessionConfig()``.

    Returns
    -------
    list[PositionSession]
        Newest first by close time (open time for open sessions).

    Raises
    ------
    ExecutionOrderError
        If execution timestamps cannot be ordered.
    """
    if not executions:
        return []

    config = config or SessionConfig()
    mode = detect_mode(executions, exchange, config)
    logger.info(
        "Using %s calculator for %s (%d executions)",
        mode.value, exchange or "auto-detected exchange", len(executions),
    )

    if mode == CalculatorMode.HEDGE:
        sessions = calculate_hedge_sessions(executions, config)
    else:
        sessions = calculate_inverse_sessions(executions, config)

    logger.info("Calculated %d position sessions", len(sessions))
    return sessions
