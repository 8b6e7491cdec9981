"""
Subscription graph — who depends on which slots, and who gets pushed.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from normcache._config import CacheConfig
from normcache._types import ROOT, Dependency, EntityKey, same_tree
from normcache.document._types import Selection
from normcache.lists._registry import ListRegistry
from normcache.lists._types import ListRegistration
from normcache.store._store import EntityStore
from normcache.subscription._derive import derive
from normcache.subscription._types import Derived, QueryResult, Sink, Subscription

logger = logging.getLogger(__name__)


def _same_result(new: QueryResult, last: QueryResult | None) -> bool:
    """Type-aware: `1` replacing `True` is a change worth pushing."""
    if last is None:
        return False
    return new.partial == last.partial and same_tree(new.data, last.data)


class SubscriptionGraph:
    """
    Active subscriptions indexed by the slots they read.

    notify() recomputes only subscriptions whose dependencies intersect
    the changed slots, and pushes only values that differ from the last
    one pushed.

    Example:
        graph = SubscriptionGraph(store, registry)
        handle = graph.subscribe(all_items.selection, sink_from(render))
        graph.notify(store.write(all_items.selection, data))
        graph.unsubscribe(handle)
    """

    __slots__ = ("_store", "_lists", "_config", "_subscriptions", "_index", "_ids")

    def __init__(
        self,
        store: EntityStore,
        lists: ListRegistry,
        config: CacheConfig | None = None,
    ) -> None:
        self._store = store
        self._lists = lists
        self._config = config or CacheConfig()
        self._subscriptions: dict[int, Subscription] = {}
        self._index: dict[Dependency, set[int]] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._subscriptions)

    def dependents(self, dependency: Dependency) -> frozenset[int]:
        """Ids of subscriptions reading a slot."""
        return frozenset(self._index.get(dependency, ()))

    # ═══════════════════════════════════════════════════════════════════════
    # Subscribe / Unsubscribe
    # ═══════════════════════════════════════════════════════════════════════

    def subscribe(
        self,
        selection: Selection,
        sink: Sink,
        variables: Mapping[str, Any] | None = None,
        root: EntityKey = ROOT,
    ) -> Subscription:
        """
        Start pushing `selection`'s derived value into `sink`.

        Registers every @list the selection mounts; raises
        DuplicateListRegistration (and registers nothing) on a name clash.
        """
        subscription = Subscription(
            id=next(self._ids),
            selection=selection,
            variables=dict(variables or {}),
            root=root,
            sink=sink,
        )
        derived = derive(self._store, selection, subscription.variables, root)
        self._reconcile_lists(subscription, derived.lists)
        self._subscriptions[subscription.id] = subscription
        self._track(subscription, derived)
        subscription.last = derived.result
        logger.debug(
            "Subscription %d mounted (%d dependencies)",
            subscription.id,
            len(derived.dependencies),
        )

        if self._config.notify_initial:
            self._push(subscription, derived.result)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop pushing; release the subscription's lists. Idempotent."""
        if not subscription.active:
            return
        subscription.active = False
        self._subscriptions.pop(subscription.id, None)
        self._untrack(subscription)
        for registration in subscription.lists:
            self._lists.release(registration)
        subscription.lists = frozenset()
        logger.debug("Subscription %d unmounted", subscription.id)

    def read(
        self,
        selection: Selection,
        variables: Mapping[str, Any] | None = None,
        root: EntityKey = ROOT,
    ) -> QueryResult:
        """One-shot derivation; nothing is tracked."""
        return derive(self._store, selection, variables, root).result

    # ═══════════════════════════════════════════════════════════════════════
    # Notify
    # ═══════════════════════════════════════════════════════════════════════

    def notify(self, changes: Iterable[Dependency]) -> int:
        """
        Recompute subscriptions affected by `changes`.

        Returns the number of sinks that received a new value. A
        subscription unsubscribed before its turn is skipped.
        """
        affected: set[int] = set()
        for dependency in changes:
            affected |= self._index.get(dependency, set())

        pushed = 0
        for subscription_id in sorted(affected):
            subscription = self._subscriptions.get(subscription_id)
            if subscription is None or not subscription.active:
                continue

            derived = derive(
                self._store,
                subscription.selection,
                subscription.variables,
                subscription.root,
            )
            self._reconcile_lists(subscription, derived.lists)
            self._track(subscription, derived)

            if not _same_result(derived.result, subscription.last):
                subscription.last = derived.result
                self._push(subscription, derived.result)
                pushed += 1

        if affected:
            logger.debug("Notified %d of %d affected subscription(s)", pushed, len(affected))
        return pushed

    # ═══════════════════════════════════════════════════════════════════════
    # Internals
    # ═══════════════════════════════════════════════════════════════════════

    def _push(self, subscription: Subscription, value: QueryResult) -> None:
        subscription.pushes += 1
        try:
            subscription.sink.update(value)
        except Exception:
            # Sink errors stay with their subscription.
            logger.exception("Sink of subscription %d raised", subscription.id)

    def _track(self, subscription: Subscription, derived: Derived) -> None:
        self._untrack(subscription)
        subscription.dependencies = derived.dependencies
        for dependency in derived.dependencies:
            self._index.setdefault(dependency, set()).add(subscription.id)

    def _untrack(self, subscription: Subscription) -> None:
        for dependency in subscription.dependencies:
            ids = self._index.get(dependency)
            if ids is None:
                continue
            ids.discard(subscription.id)
            if not ids:
                del self._index[dependency]

    def _reconcile_lists(
        self,
        subscription: Subscription,
        lists: frozenset[ListRegistration],
    ) -> None:
        added = lists - subscription.lists
        acquired: list[ListRegistration] = []
        try:
            for registration in added:
                acquired.append(self._lists.acquire(registration))
        except Exception:
            for registration in acquired:
                self._lists.release(registration)
            raise

        for registration in subscription.lists - lists:
            self._lists.release(registration)
        subscription.lists = lists


__all__ = ("SubscriptionGraph",)
