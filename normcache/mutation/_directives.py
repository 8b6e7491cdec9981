"""
Directive interpreter — list markers in a mutation response.

Walks the response along its selection and, for every field carrying
markers, runs the matching list operation. A marker that cannot be
resolved is reported and skipped; the rest of the walk continues.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any

from normcache._errors import ListResolutionError
from normcache._types import Changes, EntityKey
from normcache.document._types import (
    DeleteEverywhere,
    Field,
    Insert,
    Marker,
    Remove,
    Selection,
    Toggle,
    Variable,
    pairs,
)
from normcache.lists._registry import ListRegistry, Parent
from normcache.lists._types import FilterContext
from normcache.mutation._types import MergeOutcome
from normcache.store._resolver import Resolver
from normcache.store._snapshot import Snapshot

logger = logging.getLogger(__name__)


def _items(value: Any) -> Iterator[Any]:
    if isinstance(value, (list, tuple)):
        for item in value:
            yield from _items(item)
    elif value is not None:
        yield value


def _scalars(obj: Mapping[str, Any]) -> tuple[tuple[str, Any], ...]:
    return pairs({k: v for k, v in obj.items() if not isinstance(v, (Mapping, list, tuple))})


class _Interpreter:
    __slots__ = ("registry", "resolver", "variables", "snapshot", "outcome", "applied")

    def __init__(
        self,
        registry: ListRegistry,
        resolver: Resolver,
        variables: Mapping[str, Any],
        snapshot: Snapshot | None,
        outcome: MergeOutcome,
        applied: frozenset[tuple[str, EntityKey]],
    ) -> None:
        self.registry = registry
        self.resolver = resolver
        self.variables = variables
        self.snapshot = snapshot
        self.outcome = outcome
        self.applied = applied

    def walk(self, selection: Selection, data: Any) -> None:
        if not isinstance(data, Mapping):
            return
        for f in selection:
            if f.response_key not in data:
                continue
            value = data[f.response_key]
            for marker in f.markers:
                for item in _items(value):
                    self.run(f, marker, item)
            if f.selection is not None:
                for item in _items(value):
                    self.walk(f.selection, item)

    def run(self, f: Field, marker: Marker, item: Any) -> None:
        try:
            self.outcome.changes |= self.apply(f, marker, item)
        except ListResolutionError as e:
            logger.warning("List directive on %s skipped: %s", f.response_key, e)
            self.outcome.list_errors.append(e)

    def apply(self, f: Field, marker: Marker, item: Any) -> Changes:
        match marker:
            case Insert(name, position, when, when_not, parent):
                key = self.identify(name, f, item)
                context = FilterContext(_scalars(item), when, when_not)
                return self.registry.insert(
                    name,
                    key,
                    position,
                    context,
                    parent=self.parent(name, parent),
                    snapshot=self.snapshot,
                )
            case Remove(name, parent):
                key = self.identify(name, f, item)
                return self.registry.remove(
                    name,
                    key,
                    parent=self.parent(name, parent),
                    snapshot=self.snapshot,
                )
            case Toggle(name, position, when, when_not, parent):
                key = self.identify(name, f, item)
                if (name, key) in self.applied:
                    logger.debug("Toggle of %s in %s already applied", key, name)
                    return set()
                context = FilterContext(_scalars(item), when, when_not)
                changes = self.registry.toggle(
                    name,
                    key,
                    position,
                    context,
                    parent=self.parent(name, parent),
                    snapshot=self.snapshot,
                )
                self.outcome.toggled.add((name, key))
                return changes
            case DeleteEverywhere(typename):
                if isinstance(item, Mapping):
                    key = self.identify(f"{typename}_delete", f, item, typename)
                else:
                    key = EntityKey(typename, str(item))
                return self.registry.delete_everywhere(key, self.snapshot)

    def identify(self, name: str, f: Field, item: Any, typename: str | None = None) -> EntityKey:
        key = self.resolver.resolve(item, typename or f.typename)
        if key is None:
            raise ListResolutionError(name, f"value of {f.response_key!r} has no identity")
        return key

    def parent(self, name: str, parent: str | Variable | None) -> Parent | None:
        if isinstance(parent, Variable):
            try:
                value = self.variables[parent.name]
            except KeyError:
                raise ListResolutionError(name, f"parent variable ${parent.name} is not set") from None
            return value if isinstance(value, EntityKey) else str(value)
        return parent


def interpret(
    registry: ListRegistry,
    resolver: Resolver,
    selection: Selection,
    data: Mapping[str, Any],
    variables: Mapping[str, Any] | None = None,
    *,
    snapshot: Snapshot | None = None,
    outcome: MergeOutcome | None = None,
    applied_toggles: frozenset[tuple[str, EntityKey]] = frozenset(),
) -> MergeOutcome:
    """
    Run every list marker in `data`.

    Changes and list errors accumulate in `outcome` (a fresh one if not
    given). Toggles listed in `applied_toggles` were already flipped by an
    earlier pass over the same mutation and are skipped.
    """
    outcome = outcome if outcome is not None else MergeOutcome()
    _Interpreter(registry, resolver, variables or {}, snapshot, outcome, applied_toggles).walk(selection, data)
    return outcome


__all__ = ("interpret",)
