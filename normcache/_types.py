"""
Core types for normcache.

Re-exports from kungfu + identity, reference and change types shared
by every component.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Entity Identity
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class EntityKey:
    """
    Stable identity of a stored record.

    Two objects with the same (typename, id) are the same record, no matter
    which query delivered them. Embedded keys are derived from the parent
    path of an object that has no identity of its own.
    """

    typename: str
    id: str
    embedded: bool = False

    def __str__(self) -> str:
        return f"{self.typename}:{self.id}"


ROOT: Final = EntityKey("__ROOT__", "__ROOT__")
"""Key of the operation root record (queries and mutations write here)."""


@dataclass(frozen=True, slots=True)
class Ref:
    """Stored pointer to another record."""

    key: EntityKey


class _Missing:
    """Marker for a field or entity the store does not hold."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()

# ═══════════════════════════════════════════════════════════════════════════════
# Change Tracking
# ═══════════════════════════════════════════════════════════════════════════════

type Dependency = tuple[EntityKey, str]
"""A single (record, field key) slot — the unit of change and of dependency."""

type Changes = set[Dependency]

# ═══════════════════════════════════════════════════════════════════════════════
# Field Keys
# ═══════════════════════════════════════════════════════════════════════════════


def field_key(name: str, args: Mapping[str, Any] | None = None) -> str:
    """
    Storage slot name for a field.

    Arguments are part of the identity: `items(first: 10)` and
    `items(first: 20)` never share a slot.

        field_key("items")                 # "items"
        field_key("items", {"first": 10})  # 'items({"first":10})'
    """
    if not args:
        return name
    signature = json.dumps(dict(args), sort_keys=True, separators=(",", ":"), default=str)
    return f"{name}({signature})"


def base_name(key: str) -> str:
    """Field name of a storage slot, arguments stripped."""
    return key.split("(", 1)[0]


def same_value(left: object, right: object) -> bool:
    """Equality that does not confuse `1` with `True`."""
    return type(left) is type(right) and left == right


def same_tree(left: object, right: object) -> bool:
    """same_value applied through nested dicts and lists."""
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(same_tree(left[k], right[k]) for k in left)
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(same_tree(a, b) for a, b in zip(left, right))
    return same_value(left, right)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Identity
    "EntityKey",
    "ROOT",
    "Ref",
    "MISSING",
    # Changes
    "Dependency",
    "Changes",
    # Field keys
    "field_key",
    "base_name",
    "same_value",
    "same_tree",
)
