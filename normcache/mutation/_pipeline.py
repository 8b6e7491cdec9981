"""
Mutation pipeline — optimistic write, dispatch, commit or rollback.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from kungfu import LazyCoroResult, Result, Ok, Error

from normcache._errors import MutationFailure
from normcache._network import Network, Request, send
from normcache._types import Changes
from normcache.document._types import Document, OperationKind
from normcache.mutation._types import MutationResult, MutationState, PendingMutation
from normcache.store._snapshot import Snapshot

if TYPE_CHECKING:
    from normcache._cache import Cache

logger = logging.getLogger(__name__)

_ids = itertools.count(1)


class MutationPipeline:
    """
    Executes one mutation document against a cache.

    Per invocation:

        IDLE → OPTIMISTIC_APPLIED → PENDING → COMMITTED
                                            → ROLLED_BACK

    The optimistic step only happens when an optimistic response is given.
    Several invocations may be pending at once; each owns its snapshot.

    Example:
        add_item = cache.mutation(ADD_ITEM, network)

        result = await add_item.invoke(
            {"text": "milk"},
            optimistic_response={"addItem": {"__typename": "Item", "id": "tmp", "text": "milk"}},
        )

        match result:
            case Ok(r):
                print(r.data)
            case Error(e):
                print(f"rolled back: {e.rolled_back}, {e.message}")
    """

    __slots__ = ("_cache", "_document", "_network")

    def __init__(self, cache: Cache, document: Document, network: Network) -> None:
        if document.kind is not OperationKind.MUTATION:
            raise ValueError(f"{document.name} is not a mutation")
        self._cache = cache
        self._document = document
        self._network = network

    @property
    def document(self) -> Document:
        return self._document

    def invoke(
        self,
        variables: Mapping[str, Any] | None = None,
        *,
        optimistic_response: Mapping[str, Any] | None = None,
    ) -> LazyCoroResult[MutationResult, MutationFailure]:
        """
        Run the mutation.

        Lazy: nothing is written or sent until the result is awaited.
        Resolves Ok(MutationResult) with the server data, or
        Error(MutationFailure) after rolling back any optimistic write.
        """
        cache = self._cache
        document = self._document
        network = self._network
        values = dict(variables or {})

        async def execute() -> Result[MutationResult, MutationFailure]:
            pending = PendingMutation(id=next(_ids), operation=document.name)

            if optimistic_response is not None:
                cache.pending[pending.id] = pending
                try:
                    outcome = cache.merge(
                        document.selection,
                        optimistic_response,
                        values,
                        snapshot=pending.snapshot,
                    )
                    pending.toggled = frozenset(outcome.toggled)
                    pending.state = MutationState.OPTIMISTIC_APPLIED
                    cache.subscriptions.notify(outcome.changes)
                except Exception:
                    _rollback(cache, pending)
                    raise
                logger.info(
                    "Mutation %s#%d applied optimistically (%d slot(s))",
                    document.name,
                    pending.id,
                    len(pending.snapshot),
                )

            optimistic = pending.state is MutationState.OPTIMISTIC_APPLIED
            pending.state = MutationState.PENDING

            try:
                response = await send(network, Request(document, values))
            except asyncio.CancelledError:
                if optimistic:
                    _rollback(cache, pending)
                raise

            match response:
                case Ok(data):
                    written = Snapshot()
                    try:
                        outcome = cache.merge(
                            document.selection,
                            data,
                            values,
                            snapshot=written,
                            applied_toggles=pending.toggled,
                        )
                        if optimistic:
                            outcome.changes |= _drop_placeholders(cache, pending, written)
                        cache.subscriptions.notify(outcome.changes)
                    except Exception:
                        # Neither the partial commit nor the optimistic layer survives.
                        _rollback(cache, pending, written)
                        raise
                    pending.state = MutationState.COMMITTED
                    cache.pending.pop(pending.id, None)
                    logger.info("Mutation %s#%d committed", document.name, pending.id)
                    return Ok(
                        MutationResult(
                            data=data,
                            list_errors=tuple(outcome.list_errors),
                            optimistic=optimistic,
                        )
                    )

                case Error(failure):
                    if optimistic:
                        _rollback(cache, pending)
                    else:
                        logger.info("Mutation %s#%d failed: %s", document.name, pending.id, failure.message)
                    return Error(
                        MutationFailure(
                            kind=failure.kind,
                            operation=failure.operation,
                            message=failure.message,
                            errors=failure.errors,
                            rolled_back=optimistic,
                        )
                    )

        return LazyCoroResult(execute)


def _drop_placeholders(cache: Cache, pending: PendingMutation, written: Snapshot) -> Changes:
    """Delete records only the optimistic write created (e.g. temporary ids)."""
    changes: Changes = set()
    for key in pending.snapshot.created_keys - written.touched_keys:
        if key in cache.store:
            logger.debug("Dropping optimistic placeholder %s", key)
            changes |= cache.lists.delete_everywhere(key, written)
    return changes


def _rollback(cache: Cache, pending: PendingMutation, *later: Snapshot) -> None:
    """
    Restore snapshots, unconditionally, and tell subscribers.

    `later` snapshots (a failed commit) are undone first, newest first,
    then the optimistic one.
    """
    changes: Changes = set()
    for snapshot in (*later, pending.snapshot):
        changes |= cache.store.restore(snapshot)
    pending.state = MutationState.ROLLED_BACK
    cache.pending.pop(pending.id, None)
    logger.warning(
        "Mutation %s#%d rolled back (%d slot(s) restored)",
        pending.operation,
        pending.id,
        len(changes),
    )
    cache.subscriptions.notify(changes)


__all__ = ("MutationPipeline",)
