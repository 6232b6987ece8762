"""
Caller-owned memoization of loaded executions and computed sessions.

One SessionCache per consumer (CLI invocation, dashboard process, ...).
Nothing is cached at module level; call invalidate() after new data is
ingested.
"""

from __future__ import annotations

import logging

from config.session_config import SessionConfig
from session_core.contracts import Execution, PositionSession
from session_core.dispatcher import calculate_sessions

from data.execution_store import ExecutionStore

logger = logging.getLogger("sessions.data")


class SessionCache:
    """Per-exchange cache in front of an ExecutionStore."""

    def __init__(self, store: ExecutionStore, config: SessionConfig | None = None) -> None:
        self._store = store
        self._config = config or SessionConfig()
        self._executions: dict[str, list[Execution]] = {}
        self._sessions: dict[str, list[PositionSession]] = {}

    def get_executions(self, exchange: str) -> list[Execution]:
        key = exchange.lower()
        if key not in self._executions:
            self._executions[key] = self._store.get_executions(key)
        return self._executions[key]

    def get_sessions(self, exchange: str) -> list[PositionSession]:
        key = exchange.lower()
        if key not in self._sessions:
            executions = self.get_executions(key)
            self._sessions[key] = calculate_sessions(executions, key, self._config)
            logger.info(
                "[%s] Calculated %d position sessions from %d executions",
                key, len(self._sessions[key]), len(executions),
            )
        return self._sessions[key]

    def invalidate(self, exchange: str | None = None) -> None:
        """Drop cached data for one exchange, or for all when *exchange* is None."""
        if exchange is None:
            self._executions.clear()
            self._sessions.clear()
            return
        key = exchange.lower()
        self._executions.pop(key, None)
        self._sessions.pop(key, None)

    def is_cached(self, exchange: str) -> bool:
        return exchange.lower() in self._sessions
