"""
Snapshot — prior field values captured on first overwrite.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from normcache._types import Dependency, EntityKey


class Snapshot:
    """
    Prior values of every slot a speculative write touched.

    Only the first capture of a slot counts: a second write by the same
    mutation must not replace the value that existed before it started.
    MISSING is a valid prior value (the slot did not exist).
    """

    __slots__ = ("_priors", "_created")

    def __init__(self) -> None:
        self._priors: dict[Dependency, Any] = {}
        self._created: set[EntityKey] = set()

    def capture(self, key: EntityKey, field: str, prior: Any) -> None:
        self._priors.setdefault((key, field), prior)

    def created(self, key: EntityKey) -> None:
        """Record that `key` did not exist before the write."""
        self._created.add(key)

    @property
    def created_keys(self) -> frozenset[EntityKey]:
        return frozenset(self._created)

    @property
    def touched_keys(self) -> frozenset[EntityKey]:
        """Every record the write reached, changed or not."""
        return frozenset(key for key, _ in self._priors) | self._created

    def items(self) -> Iterator[tuple[Dependency, Any]]:
        return iter(self._priors.items())

    def __contains__(self, slot: object) -> bool:
        return slot in self._priors

    def __len__(self) -> int:
        return len(self._priors)

    def __repr__(self) -> str:
        return f"Snapshot(slots={len(self._priors)}, created={len(self._created)})"


__all__ = ("Snapshot",)
