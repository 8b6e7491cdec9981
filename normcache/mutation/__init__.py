"""
Mutation — optimistic writes with exact rollback, plus list fan-out.

    from normcache import mutation as M

    pipeline = cache.mutation(ADD_ITEM, network)
    result = await pipeline.invoke({"text": "milk"}, optimistic_response=guess)
"""

from __future__ import annotations

from normcache.mutation._types import (
    MutationState,
    PendingMutation,
    MergeOutcome,
    MutationResult,
)
from normcache.mutation._directives import interpret
from normcache.mutation._pipeline import MutationPipeline

__all__ = (
    "MutationState",
    "PendingMutation",
    "MergeOutcome",
    "MutationResult",
    "interpret",
    "MutationPipeline",
)
