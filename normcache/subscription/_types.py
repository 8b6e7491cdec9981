"""
Subscription types — pushed values, sinks, handles.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from normcache._types import Dependency, EntityKey
from normcache.document._types import Selection
from normcache.lists._types import ListRegistration

# ═══════════════════════════════════════════════════════════════════════════════
# QueryResult — What Sinks Receive
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class QueryResult:
    """
    Derived value of a selection.

    partial: some entity or field the selection needs is not in the store;
             those positions hold MISSING.
    """

    data: Any
    partial: bool = False


# ═══════════════════════════════════════════════════════════════════════════════
# Sink Protocol — Rendering Side Implements This
# ═══════════════════════════════════════════════════════════════════════════════


class Sink(Protocol):
    """
    Receiver of derived values.

    Called only when the derived value actually changed.

    Example:
        class StoreSink:
            def __init__(self, writable: Writable) -> None:
                self.writable = writable

            def update(self, value: QueryResult) -> None:
                self.writable.set(value.data)
    """

    def update(self, value: QueryResult) -> None:
        """Receive a new derived value."""
        ...


@dataclass(frozen=True, slots=True)
class FunctionalSink:
    """Sink built from a callable."""

    _update: Callable[[QueryResult], None]

    def update(self, value: QueryResult) -> None:
        self._update(value)


def sink_from(fn: Callable[[QueryResult], None]) -> FunctionalSink:
    """
    Create Sink from a function.

    Example:
        cache.subscribe(all_items, sink_from(lambda r: print(r.data)))
    """
    return FunctionalSink(_update=fn)


# ═══════════════════════════════════════════════════════════════════════════════
# Derived — One Derivation Pass
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Derived:
    """Result of reading a selection plus everything the read touched."""

    result: QueryResult
    dependencies: frozenset[Dependency]
    lists: frozenset[ListRegistration]


# ═══════════════════════════════════════════════════════════════════════════════
# Subscription — Handle
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(eq=False, slots=True)
class Subscription:
    """
    A live subscription.

    Returned by subscribe(); pass it back to unsubscribe().
    dependencies is replaced after every derivation.
    """

    id: int
    selection: Selection
    variables: Mapping[str, Any]
    root: EntityKey
    sink: Sink
    dependencies: frozenset[Dependency] = frozenset()
    lists: frozenset[ListRegistration] = frozenset()
    last: QueryResult | None = None
    active: bool = True
    pushes: int = 0


__all__ = (
    "QueryResult",
    "Sink",
    "FunctionalSink",
    "sink_from",
    "Derived",
    "Subscription",
)
