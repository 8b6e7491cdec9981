"""
Derivation — rebuild a selection's tree from the store.

Reads node by node and records every slot it touches, so the dependency
set is exactly what the value was built from.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from normcache._types import MISSING, ROOT, Dependency, EntityKey, Ref
from normcache.document._types import Field, Selection, pairs
from normcache.lists._types import ListRegistration
from normcache.store._store import EntityStore
from normcache.subscription._types import Derived, QueryResult


class _Reader:
    __slots__ = ("store", "variables", "dependencies", "lists", "partial")

    def __init__(self, store: EntityStore, variables: Mapping[str, Any]) -> None:
        self.store = store
        self.variables = variables
        self.dependencies: set[Dependency] = set()
        self.lists: set[ListRegistration] = set()
        self.partial = False

    def record(self, key: EntityKey, selection: Selection) -> Any:
        if key not in self.store:
            # Still depend on the slots, so a later write brings it back.
            for f in selection:
                self.dependencies.add((key, f.key(self.variables)))
            self.partial = True
            return MISSING

        out: dict[str, Any] = {}
        for f in selection:
            slot = f.key(self.variables)
            self.dependencies.add((key, slot))
            if f.list_name is not None:
                self.lists.add(
                    ListRegistration(
                        name=f.list_name,
                        anchor=key,
                        field_path=(slot,),
                        filters=pairs(f.arguments(self.variables)),
                    )
                )
            out[f.response_key] = self.value(f, self.store.read(key, slot))
        return out

    def value(self, f: Field, value: Any) -> Any:
        if value is MISSING:
            self.partial = True
            return MISSING
        if isinstance(value, tuple):
            return [self.value(f, item) for item in value]
        if isinstance(value, Ref):
            if f.selection is None:
                return str(value.key)
            return self.record(value.key, f.selection)
        return value


def derive(
    store: EntityStore,
    selection: Selection,
    variables: Mapping[str, Any] | None = None,
    root: EntityKey = ROOT,
) -> Derived:
    """
    Read `selection` starting at `root`.

    Missing entities and fields come back as MISSING and mark the result
    partial.
    """
    reader = _Reader(store, variables or {})
    data = reader.record(root, selection)
    return Derived(
        result=QueryResult(data=data, partial=reader.partial),
        dependencies=frozenset(reader.dependencies),
        lists=frozenset(reader.lists),
    )


__all__ = ("derive",)
