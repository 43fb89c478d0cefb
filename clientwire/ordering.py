"""Ordering helpers for customizers and other chained hooks."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Final, Protocol, TypeVar, runtime_checkable

HIGHEST_PRECEDENCE: Final[int] = -(2**31)
LOWEST_PRECEDENCE: Final[int] = 2**31 - 1

T = TypeVar("T")


@runtime_checkable
class Ordered(Protocol):
    """Anything exposing an integer ``order``; lower values run first."""

    @property
    def order(self) -> int: ...


def get_order(obj: Any) -> int:
    """Return the order of ``obj``, treating unordered objects as lowest precedence."""

    order = getattr(obj, "order", None)
    if isinstance(order, int) and not isinstance(order, bool):
        return order
    return LOWEST_PRECEDENCE


def sort_by_order(items: Iterable[T]) -> list[T]:
    """Return ``items`` sorted by order; equal orders keep registration order."""

    return sorted(items, key=get_order)
