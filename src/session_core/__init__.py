"""
session-core: position session reconstruction from exchange fills.

No I/O, no network, no side effects. Consumes Execution records, produces
PositionSession records. Fully deterministic and unit-testable.
"""

from session_core.contracts import (
    AggregatedOrder,
    CalculatorMode,
    Execution,
    ExecutionOrderError,
    PositionSession,
    PositionSide,
    SessionSide,
    SessionStatus,
    SessionTrade,
    Side,
)
from session_core.dispatcher import calculate_sessions, detect_mode
from session_core.hedge import calculate_hedge_sessions
from session_core.inverse import calculate_inverse_sessions
from session_core.stats import SessionStats, summarize_sessions

__all__ = [
    "AggregatedOrder",
    "CalculatorMode",
    "calculate_hedge_sessions",
    "calculate_inverse_sessions",
    "calculate_sessions",
    "detect_mode",
    "Execution",
    "ExecutionOrderError",
    "PositionSession",
    "PositionSide",
    "SessionSide",
    "SessionStats",
    "SessionStatus",
    "SessionTrade",
    "Side",
    "summarize_sessions",
]
