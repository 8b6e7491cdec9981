"""
Entity store — normalized key → field-map storage.

Knows nothing about queries or subscribers. Every write reports the exact
slots whose value changed so the subscription graph can recompute only
what depends on them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from normcache._types import (
    MISSING,
    ROOT,
    Changes,
    EntityKey,
    Ref,
    same_value,
)
from normcache.document._types import Field, Selection
from normcache.store._resolver import Resolver
from normcache.store._snapshot import Snapshot

logger = logging.getLogger(__name__)


def references(value: Any, key: EntityKey) -> bool:
    """Whether a stored value points at `key`."""
    if isinstance(value, Ref):
        return value.key == key
    if isinstance(value, tuple):
        return any(references(v, key) for v in value)
    return False


class EntityStore:
    """
    Normalized record storage.

    Records map field keys to scalars, Refs, or tuples of those. Writes
    merge: a payload that omits a field never removes it.

    Example:
        store = EntityStore(Resolver(CacheConfig()))
        changes = store.write(all_items.selection, {"items": [...]})
        store.read(EntityKey("Item", "1"), "text")
    """

    __slots__ = ("_resolver", "_records")

    def __init__(self, resolver: Resolver) -> None:
        self._resolver = resolver
        self._records: dict[EntityKey, dict[str, Any]] = {ROOT: {}}

    @property
    def resolver(self) -> Resolver:
        return self._resolver

    # ═══════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════

    def read(self, key: EntityKey, field: str) -> Any:
        """Stored value of a slot, or MISSING."""
        record = self._records.get(key)
        if record is None:
            return MISSING
        return record.get(field, MISSING)

    def record(self, key: EntityKey) -> Mapping[str, Any] | None:
        """Read-only view of a record."""
        record = self._records.get(key)
        return MappingProxyType(record) if record is not None else None

    def keys(self) -> Iterator[EntityKey]:
        return iter(list(self._records))

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    # ═══════════════════════════════════════════════════════════════════════
    # Single-slot write
    # ═══════════════════════════════════════════════════════════════════════

    def put(
        self,
        key: EntityKey,
        field: str,
        value: Any,
        snapshot: Snapshot | None = None,
    ) -> bool:
        """
        Set one slot. Returns True if the stored value changed.

        The only place records are mutated besides delete/restore, so a
        snapshot sees every prior value.
        """
        record = self._ensure(key, snapshot)
        prior = record.get(field, MISSING)
        if snapshot is not None:
            snapshot.capture(key, field, prior)
        if prior is not MISSING and same_value(prior, value):
            return False
        record[field] = value
        return True

    def _ensure(self, key: EntityKey, snapshot: Snapshot | None) -> dict[str, Any]:
        record = self._records.get(key)
        if record is None:
            if snapshot is not None:
                snapshot.created(key)
            record = self._records[key] = {}
        return record

    # ═══════════════════════════════════════════════════════════════════════
    # Normalizing write
    # ═══════════════════════════════════════════════════════════════════════

    def write(
        self,
        selection: Selection,
        data: Mapping[str, Any],
        variables: Mapping[str, Any] | None = None,
        *,
        parent: EntityKey = ROOT,
        snapshot: Snapshot | None = None,
    ) -> Changes:
        """
        Merge a response into the store.

        Nested objects are normalized first, then the parent slot stores
        their Ref (or tuple of Refs). Returns every (key, field) whose
        stored value changed.
        """
        changes: Changes = set()
        self._ensure(parent, snapshot)
        self._write_fields(parent, selection, data, variables or {}, changes, snapshot)
        logger.debug("Write under %s changed %d slot(s)", parent, len(changes))
        return changes

    def _write_fields(
        self,
        key: EntityKey,
        selection: Selection,
        data: Mapping[str, Any],
        variables: Mapping[str, Any],
        changes: Changes,
        snapshot: Snapshot | None,
    ) -> None:
        for f in selection:
            if f.response_key not in data:
                continue
            slot = f.key(variables)
            value = self._normalize(key, slot, f, data[f.response_key], variables, changes, snapshot)
            if self.put(key, slot, value, snapshot):
                changes.add((key, slot))

    def _normalize(
        self,
        parent: EntityKey,
        slot: str,
        f: Field,
        value: Any,
        variables: Mapping[str, Any],
        changes: Changes,
        snapshot: Snapshot | None,
        index: int | None = None,
    ) -> Any:
        if value is None or f.selection is None:
            return value

        if isinstance(value, (list, tuple)):
            return tuple(
                self._normalize(parent, slot, f, item, variables, changes, snapshot, i)
                for i, item in enumerate(value)
            )

        if not isinstance(value, Mapping):
            # Scalar in an object position; keep it as delivered.
            return value

        key = self._resolver.resolve(value, f.typename)
        if key is None:
            typename = self._resolver.typename(value, f.typename)
            key = self._resolver.embedded(parent, slot, typename, index)

        self._ensure(key, snapshot)
        self._write_fields(key, f.selection, value, variables, changes, snapshot)
        return Ref(key)

    # ═══════════════════════════════════════════════════════════════════════
    # Delete / Restore
    # ═══════════════════════════════════════════════════════════════════════

    def delete(self, key: EntityKey, snapshot: Snapshot | None = None) -> Changes:
        """
        Remove a record.

        Returns the record's own slots plus every (referrer, field) that
        still points at it, so readers of either side recompute.
        """
        if key == ROOT:
            raise ValueError("The root record cannot be deleted")

        record = self._records.pop(key, None)
        if record is None:
            return set()

        changes: Changes = set()
        for field, value in record.items():
            if snapshot is not None:
                snapshot.capture(key, field, value)
            changes.add((key, field))

        for other_key, other in self._records.items():
            for field, value in other.items():
                if references(value, key):
                    changes.add((other_key, field))

        logger.debug("Deleted %s (%d dependent slot(s))", key, len(changes))
        return changes

    def restore(self, snapshot: Snapshot) -> Changes:
        """
        Put every captured slot back to its prior value.

        Unconditional: values written by anyone else since the capture are
        overwritten. Records the snapshot saw being created are dropped
        once they are empty again.
        """
        changes: Changes = set()
        for (key, field), prior in snapshot.items():
            record = self._records.get(key)
            if prior is MISSING:
                if record is not None and field in record:
                    del record[field]
                    changes.add((key, field))
                continue

            if record is None:
                record = self._records[key] = {}
            current = record.get(field, MISSING)
            if current is MISSING or not same_value(current, prior):
                record[field] = prior
                changes.add((key, field))

        for key in snapshot.created_keys:
            record = self._records.get(key)
            if record is not None and not record and key != ROOT:
                del self._records[key]

        logger.debug("Restored %d slot(s) from %r", len(changes), snapshot)
        return changes


__all__ = ("EntityStore", "references")
