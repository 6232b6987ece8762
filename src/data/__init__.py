"""
Data layer: normalize exchange fills, import CSV exports, persist executions,
cache computed sessions.

Depends on session_core.contracts for Execution; no dependency from
session_core back to data.
"""

from data.csv_import import read_executions_csv, write_executions_csv
from data.execution_store import ExecutionStore
from data.normalizer import normalize, supported_exchanges
from data.session_cache import SessionCache

__all__ = [
    "ExecutionStore",
    "normalize",
    "read_executions_csv",
    "SessionCache",
    "supported_exchanges",
    "write_executions_csv",
]
