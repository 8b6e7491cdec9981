"""
Cache — one explicitly owned instance wiring every component together.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from kungfu import LazyCoroResult, Result, Ok, Error

from normcache._config import CacheConfig
from normcache._errors import OperationFailure
from normcache._network import Network, Request, send
from normcache._types import ROOT, Changes, EntityKey
from normcache.document._types import Document, OperationKind, Selection
from normcache.lists._registry import ListRegistry
from normcache.mutation._directives import interpret
from normcache.mutation._pipeline import MutationPipeline
from normcache.mutation._types import MergeOutcome, PendingMutation
from normcache.store._resolver import Resolver
from normcache.store._snapshot import Snapshot
from normcache.store._store import EntityStore
from normcache.subscription._graph import SubscriptionGraph
from normcache.subscription._types import QueryResult, Sink, Subscription

logger = logging.getLogger(__name__)


def _selection(target: Document | Selection) -> Selection:
    return target.selection if isinstance(target, Document) else target


def _root(target: Document | Selection, root: EntityKey | None) -> EntityKey:
    if isinstance(target, Document) and target.kind is OperationKind.FRAGMENT and root is None:
        raise ValueError(f"Fragment {target.name} needs the key of the record it reads")
    return root if root is not None else ROOT


class Cache:
    """
    Normalized client cache.

    Owns the store, the list registry and the subscription graph; create
    one per client and pass it where it is needed.

    Example:
        cache = Cache(CacheConfig().with_keys("Book", "isbn"))

        handle = cache.subscribe(ALL_ITEMS, sink_from(render))
        await cache.fetch(ALL_ITEMS, network)

        add_item = cache.mutation(ADD_ITEM, network)
        await add_item.invoke({"text": "milk"})

        cache.unsubscribe(handle)
    """

    __slots__ = ("config", "resolver", "store", "lists", "subscriptions", "pending")

    def __init__(self, config: CacheConfig | None = None) -> None:
        self.config = config or CacheConfig()
        self.resolver = Resolver(self.config)
        self.store = EntityStore(self.resolver)
        self.lists = ListRegistry(self.store)
        self.subscriptions = SubscriptionGraph(self.store, self.lists, self.config)
        self.pending: dict[int, PendingMutation] = {}

    # ═══════════════════════════════════════════════════════════════════════
    # Writes
    # ═══════════════════════════════════════════════════════════════════════

    def merge(
        self,
        target: Document | Selection,
        data: Mapping[str, Any],
        variables: Mapping[str, Any] | None = None,
        *,
        parent: EntityKey = ROOT,
        snapshot: Snapshot | None = None,
        applied_toggles: frozenset[tuple[str, EntityKey]] = frozenset(),
    ) -> MergeOutcome:
        """
        Write `data` and run its list directives. Does not notify.

        Entity data is written first, so list operations always see the
        records they insert. `applied_toggles` skips Toggle markers an
        optimistic pass already flipped.
        """
        selection = _selection(target)
        outcome = MergeOutcome()
        outcome.changes |= self.store.write(
            selection, data, variables, parent=parent, snapshot=snapshot
        )
        interpret(
            self.lists,
            self.resolver,
            selection,
            data,
            variables,
            snapshot=snapshot,
            outcome=outcome,
            applied_toggles=applied_toggles,
        )
        return outcome

    def write(
        self,
        target: Document | Selection,
        data: Mapping[str, Any],
        variables: Mapping[str, Any] | None = None,
        *,
        parent: EntityKey = ROOT,
    ) -> Changes:
        """Merge `data` and push the result to every affected subscriber."""
        outcome = self.merge(target, data, variables, parent=parent)
        self.subscriptions.notify(outcome.changes)
        return outcome.changes

    def delete(self, key: EntityKey) -> Changes:
        """Drop a record from every list and the store, then notify."""
        changes = self.lists.delete_everywhere(key)
        self.subscriptions.notify(changes)
        return changes

    # ═══════════════════════════════════════════════════════════════════════
    # Reads / Subscriptions
    # ═══════════════════════════════════════════════════════════════════════

    def read(
        self,
        target: Document | Selection,
        variables: Mapping[str, Any] | None = None,
        *,
        root: EntityKey | None = None,
    ) -> QueryResult:
        return self.subscriptions.read(_selection(target), variables, _root(target, root))

    def subscribe(
        self,
        target: Document | Selection,
        sink: Sink,
        variables: Mapping[str, Any] | None = None,
        *,
        root: EntityKey | None = None,
    ) -> Subscription:
        """Push `target`'s derived value into `sink` on every change."""
        return self.subscriptions.subscribe(
            _selection(target), sink, variables, _root(target, root)
        )

    def unsubscribe(self, subscription: Subscription) -> None:
        self.subscriptions.unsubscribe(subscription)

    # ═══════════════════════════════════════════════════════════════════════
    # Network
    # ═══════════════════════════════════════════════════════════════════════

    def mutation(self, document: Document, network: Network) -> MutationPipeline:
        """Bind a mutation document to this cache and a transport."""
        return MutationPipeline(self, document, network)

    def fetch(
        self,
        document: Document,
        network: Network,
        variables: Mapping[str, Any] | None = None,
    ) -> LazyCoroResult[Mapping[str, Any], OperationFailure]:
        """
        Execute a query and write its result.

        Used for first loads and background refetches alike; subscribers
        are notified like for any other write.
        """
        if document.kind is not OperationKind.QUERY:
            raise ValueError(f"{document.name} is not a query")
        values = dict(variables or {})

        async def execute() -> Result[Mapping[str, Any], OperationFailure]:
            response = await send(network, Request(document, values))
            match response:
                case Ok(data):
                    changes = self.write(document, data, values)
                    logger.debug("Query %s wrote %d slot(s)", document.name, len(changes))
                    return Ok(data)
                case Error(failure):
                    logger.info("Query %s failed: %s", document.name, failure.message)
                    return Error(failure)

        return LazyCoroResult(execute)


__all__ = ("Cache",)
