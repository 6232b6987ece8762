"""
Execution helpers shared by both calculators: trade filter, grouping, ordering.
"""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, TypeVar

from session_core.contracts import Execution, ExecutionOrderError

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

TRADE_EXEC_TYPE = "Trade"


def is_trade_fill(execution: Execution, *, require_order_id: bool = False) -> bool:
    """Real trade fill with positive quantity (and an order id when required)."""
    if execution.exec_type != TRADE_EXEC_TYPE:
        return False
    if not execution.qty > 0:
        return False
    if require_order_id and not execution.order_id:
        return False
    return True


def group_by(items: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Partition items by key; groups and members keep first-seen order."""
    groups: dict[K, list[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def chronological(items: Iterable[T], key: Callable[[T], object]) -> list[T]:
    """Stable ascending sort by timestamp into a new list.

    Raises ExecutionOrderError when timestamps cannot be compared (missing
    values, naive mixed with aware datetimes, mixed types).
    """
    try:
        return sorted(items, key=key)
    except TypeError as exc:
        raise ExecutionOrderError(f"Execution timestamps are not comparable: {exc}") from exc


def fees_in_major_units(commission: float, minor_units_per_major: float) -> float:
    """|commission| converted from minor to major currency units."""
    return abs(commission) / minor_units_per_major
