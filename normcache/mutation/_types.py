"""
Mutation types — lifecycle state and results.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from normcache._errors import ListResolutionError
from normcache._types import Changes, EntityKey
from normcache.store._snapshot import Snapshot

# ═══════════════════════════════════════════════════════════════════════════════
# Mutation State — Invocation Lifecycle
# ═══════════════════════════════════════════════════════════════════════════════


class MutationState(Enum):
    """
    State of one mutation invocation.

    Lifecycle:
        IDLE → OPTIMISTIC_APPLIED (optimistic response given)
             → PENDING (request in flight)
             → COMMITTED (server data merged)
             → ROLLED_BACK (failure; optimistic values restored)
    """

    IDLE = auto()
    OPTIMISTIC_APPLIED = auto()
    PENDING = auto()
    COMMITTED = auto()
    ROLLED_BACK = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# PendingMutation — Optimistic Bookkeeping
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(eq=False, slots=True)
class PendingMutation:
    """
    An in-flight mutation that wrote optimistic values.

    snapshot holds the values each touched slot had before the optimistic
    write; rollback restores exactly those.
    """

    id: int
    operation: str
    snapshot: Snapshot = field(default_factory=Snapshot)
    state: MutationState = MutationState.IDLE
    # Toggles already applied optimistically; the commit must not flip them back.
    toggled: frozenset[tuple[str, EntityKey]] = frozenset()

    @property
    def is_pending(self) -> bool:
        return self.state in (MutationState.OPTIMISTIC_APPLIED, MutationState.PENDING)


# ═══════════════════════════════════════════════════════════════════════════════
# Merge Outcome
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True)
class MergeOutcome:
    """What a response merge changed, and which list directives failed."""

    changes: Changes = field(default_factory=set)
    list_errors: list[ListResolutionError] = field(default_factory=list)
    # (list name, key) pairs a Toggle marker flipped
    toggled: set[tuple[str, EntityKey]] = field(default_factory=set)


# ═══════════════════════════════════════════════════════════════════════════════
# Result Types
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class MutationResult:
    """
    Successful mutation result.

    list_errors: list directives that could not be applied; the entity data
                 was committed regardless.
    """

    data: Mapping[str, Any]
    list_errors: tuple[ListResolutionError, ...] = ()
    optimistic: bool = False


__all__ = (
    "MutationState",
    "PendingMutation",
    "MergeOutcome",
    "MutationResult",
)
