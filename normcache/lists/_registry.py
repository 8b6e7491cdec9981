"""
List registry — named lists, their anchors, and membership changes.

Membership lives in the entity store, on the slot that holds the list
(`anchor.field_path[-1]`). Every structural change is therefore a plain
store write: subscribers see it as a change of that slot, and optimistic
snapshots capture it like any other field.
"""

from __future__ import annotations

import logging
from typing import Any

from normcache._errors import DuplicateListRegistration, ListResolutionError
from normcache._types import MISSING, Changes, EntityKey, Ref
from normcache.document._types import Pairs, Position
from normcache.lists._types import FilterContext, ListRegistration
from normcache.store._snapshot import Snapshot
from normcache.store._store import EntityStore

logger = logging.getLogger(__name__)

type Parent = EntityKey | str
"""A full anchor key, or just the anchor's id as given by @parentID."""


def _matches(anchor: EntityKey, parent: Parent) -> bool:
    if isinstance(parent, EntityKey):
        return anchor == parent
    return anchor.id == str(parent)


class ListRegistry:
    """
    Tracks mounted named lists and applies list operations.

    Registrations are reference counted: a list stays registered while at
    least one subscription still reads it.

    Example:
        registry = ListRegistry(store)
        registry.register("All_Items", ROOT, ("items",))
        registry.insert("All_Items", EntityKey("Item", "3"))
    """

    __slots__ = ("_store", "_lists")

    def __init__(self, store: EntityStore) -> None:
        self._store = store
        self._lists: dict[str, dict[ListRegistration, int]] = {}

    # ═══════════════════════════════════════════════════════════════════════
    # Registration
    # ═══════════════════════════════════════════════════════════════════════

    def register(
        self,
        name: str,
        anchor: EntityKey,
        field_path: tuple[str, ...],
        filters: Pairs = (),
    ) -> ListRegistration:
        """
        Register (or add a reference to) a list instance.

        Raises DuplicateListRegistration if the name is already used by a
        different field.
        """
        registration = ListRegistration(name, anchor, tuple(field_path), tuple(filters))
        return self.acquire(registration)

    def acquire(self, registration: ListRegistration) -> ListRegistration:
        instances = self._lists.get(registration.name, {})
        for existing in instances:
            if existing.shape != registration.shape:
                raise DuplicateListRegistration(
                    registration.name,
                    ".".join(existing.shape),
                    ".".join(registration.shape),
                )

        instances[registration] = instances.get(registration, 0) + 1
        self._lists[registration.name] = instances
        if instances[registration] == 1:
            logger.debug("Registered list %s at %s", registration.name, registration.anchor)
        return registration

    def release(self, registration: ListRegistration) -> None:
        """Drop one reference; the registration goes away with the last one."""
        instances = self._lists.get(registration.name)
        if not instances or registration not in instances:
            return

        instances[registration] -= 1
        if instances[registration] <= 0:
            del instances[registration]
            logger.debug("Released list %s at %s", registration.name, registration.anchor)
        if not instances:
            del self._lists[registration.name]

    def registrations(self, name: str | None = None) -> tuple[ListRegistration, ...]:
        if name is not None:
            return tuple(self._lists.get(name, ()))
        return tuple(r for instances in self._lists.values() for r in instances)

    def __contains__(self, name: object) -> bool:
        return name in self._lists

    # ═══════════════════════════════════════════════════════════════════════
    # Resolution
    # ═══════════════════════════════════════════════════════════════════════

    def resolve(self, name: str, parent: Parent | None = None) -> tuple[ListRegistration, ...]:
        """
        Registrations an operation on `name` targets.

        Without a parent, every instance must share one anchor; with a
        parent, only instances anchored there are returned.
        """
        instances = self._lists.get(name)
        if not instances:
            raise ListResolutionError(name, "no list is registered under this name")

        if parent is not None:
            matched = tuple(r for r in instances if _matches(r.anchor, parent))
            if not matched:
                raise ListResolutionError(name, f"no instance is anchored at {parent}")
            return matched

        anchors = {r.anchor for r in instances}
        if len(anchors) > 1:
            listed = ", ".join(sorted(str(a) for a in anchors))
            raise ListResolutionError(
                name, f"ambiguous between anchors {listed}; a parent id is required"
            )
        return tuple(instances)

    def locate(self, registration: ListRegistration) -> tuple[EntityKey, str]:
        """The (record, slot) holding the list's members."""
        key = registration.anchor
        for slot in registration.field_path[:-1]:
            value = self._store.read(key, slot)
            if not isinstance(value, Ref):
                raise ListResolutionError(registration.name, f"cannot reach {slot!r} from {key}")
            key = value.key
        if key not in self._store:
            raise ListResolutionError(registration.name, f"anchor {key} is not in the store")
        return key, registration.field_path[-1]

    def _current(self, registration: ListRegistration) -> tuple[EntityKey, str, tuple[Any, ...]]:
        key, slot = self.locate(registration)
        value = self._store.read(key, slot)
        if value is MISSING or value is None:
            return key, slot, ()
        if not isinstance(value, tuple):
            raise ListResolutionError(registration.name, f"{key}.{slot} does not hold a list")
        return key, slot, value

    def members(self, name: str, parent: Parent | None = None) -> tuple[EntityKey, ...]:
        """Current members of the (first) resolved instance, in order."""
        registration = self.resolve(name, parent)[0]
        _, _, value = self._current(registration)
        return tuple(item.key for item in value if isinstance(item, Ref))

    # ═══════════════════════════════════════════════════════════════════════
    # Operations
    # ═══════════════════════════════════════════════════════════════════════

    def insert(
        self,
        name: str,
        key: EntityKey,
        position: Position = Position.LAST,
        filter_context: FilterContext | None = None,
        *,
        parent: Parent | None = None,
        snapshot: Snapshot | None = None,
    ) -> Changes:
        """
        Add `key` to every targeted instance that does not hold it yet.

        Idempotent. Instances whose filters fail the predicate are skipped.
        """
        changes: Changes = set()
        for registration in self.resolve(name, parent):
            if filter_context is not None and not filter_context.accepts(registration.filters):
                logger.debug("Insert of %s into %s filtered out", key, name)
                continue
            changes |= self._insert(registration, key, position, snapshot)
        return changes

    def remove(
        self,
        name: str,
        key: EntityKey,
        *,
        parent: Parent | None = None,
        snapshot: Snapshot | None = None,
    ) -> Changes:
        """Drop `key` from every targeted instance; no-op where absent."""
        changes: Changes = set()
        for registration in self.resolve(name, parent):
            changes |= self._remove(registration, key, snapshot)
        return changes

    def toggle(
        self,
        name: str,
        key: EntityKey,
        position: Position = Position.LAST,
        filter_context: FilterContext | None = None,
        *,
        parent: Parent | None = None,
        snapshot: Snapshot | None = None,
    ) -> Changes:
        """Exactly one membership transition per targeted instance."""
        changes: Changes = set()
        for registration in self.resolve(name, parent):
            _, _, members = self._current(registration)
            if Ref(key) in members:
                changes |= self._remove(registration, key, snapshot)
            elif filter_context is None or filter_context.accepts(registration.filters):
                changes |= self._insert(registration, key, position, snapshot)
        return changes

    def delete_everywhere(self, key: EntityKey, snapshot: Snapshot | None = None) -> Changes:
        """
        Remove `key` from every registered list, then delete its record.

        Instances that cannot currently be located are skipped: there is
        nothing mounted there to remove from.
        """
        changes: Changes = set()
        for registration in self.registrations():
            try:
                changes |= self._remove(registration, key, snapshot)
            except ListResolutionError as e:
                logger.debug("Skipping %s during delete of %s: %s", registration.name, key, e)
        changes |= self._store.delete(key, snapshot)
        return changes

    def _insert(
        self,
        registration: ListRegistration,
        key: EntityKey,
        position: Position,
        snapshot: Snapshot | None,
    ) -> Changes:
        anchor, slot, members = self._current(registration)
        ref = Ref(key)
        if ref in members:
            return set()

        updated = (ref, *members) if position is Position.FIRST else (*members, ref)
        if self._store.put(anchor, slot, updated, snapshot):
            logger.debug("Inserted %s into %s at %s", key, registration.name, anchor)
            return {(anchor, slot)}
        return set()

    def _remove(
        self,
        registration: ListRegistration,
        key: EntityKey,
        snapshot: Snapshot | None,
    ) -> Changes:
        anchor, slot, members = self._current(registration)
        ref = Ref(key)
        if ref not in members:
            return set()

        updated = tuple(item for item in members if item != ref)
        if self._store.put(anchor, slot, updated, snapshot):
            logger.debug("Removed %s from %s at %s", key, registration.name, anchor)
            return {(anchor, slot)}
        return set()


__all__ = ("ListRegistry", "Parent")
