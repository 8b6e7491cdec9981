"""
Compiled document types.

These are the shapes the build-time compiler hands to the runtime:
selections, arguments, list names and list-operation markers are already
resolved. Nothing here parses GraphQL text.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from normcache._types import field_key

# ═══════════════════════════════════════════════════════════════════════════════
# Variables
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Variable:
    """Reference to an operation variable inside arguments or markers."""

    name: str


class UnboundVariable(KeyError):
    """A Variable has no value in the operation's variables."""


def resolve_value(value: Any, variables: Mapping[str, Any]) -> Any:
    """Substitute Variables (recursively) with their values."""
    match value:
        case Variable(name):
            if name not in variables:
                raise UnboundVariable(name)
            return variables[name]
        case Mapping():
            return {k: resolve_value(v, variables) for k, v in value.items()}
        case list() | tuple():
            return [resolve_value(v, variables) for v in value]
        case _:
            return value


type Pairs = tuple[tuple[str, Any], ...]
"""Ordered key/value pairs — hashable stand-in for a mapping."""


def pairs(mapping: Mapping[str, Any] | Pairs | None) -> Pairs:
    """Normalize a mapping (or pairs) into sorted pairs."""
    if not mapping:
        return ()
    items = mapping.items() if isinstance(mapping, Mapping) else mapping
    return tuple(sorted(items, key=lambda kv: kv[0]))


# ═══════════════════════════════════════════════════════════════════════════════
# List Operation Markers
# ═══════════════════════════════════════════════════════════════════════════════


class Position(Enum):
    """Where an inserted member lands."""

    FIRST = auto()
    LAST = auto()


FIRST = Position.FIRST
LAST = Position.LAST


@dataclass(frozen=True, slots=True)
class Insert:
    """`...All_Items_insert` — add the object to the named list."""

    list: str
    position: Position = Position.LAST
    when: Pairs = ()
    when_not: Pairs = ()
    parent: str | Variable | None = None


@dataclass(frozen=True, slots=True)
class Remove:
    """`...All_Items_remove` — drop the object from the named list."""

    list: str
    parent: str | Variable | None = None


@dataclass(frozen=True, slots=True)
class Toggle:
    """`...All_Items_toggle` — remove if present, insert otherwise."""

    list: str
    position: Position = Position.LAST
    when: Pairs = ()
    when_not: Pairs = ()
    parent: str | Variable | None = None


@dataclass(frozen=True, slots=True)
class DeleteEverywhere:
    """`id @Item_delete` — delete the record and drop it from every list."""

    typename: str


type Marker = Insert | Remove | Toggle | DeleteEverywhere


# ═══════════════════════════════════════════════════════════════════════════════
# Selection
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Field:
    """
    One selected field.

    args: argument pairs; values may be Variables.
    selection: sub-selection for object (or list-of-object) fields.
    typename: concrete type known at compile time, used when the response
              omits `__typename`.
    list_name: set when the field carries `@list(name: ...)`.
    markers: list operations to run for this field's value in a
             mutation response.
    """

    name: str
    alias: str | None = None
    args: Pairs = ()
    selection: Selection | None = None
    typename: str | None = None
    list_name: str | None = None
    markers: tuple[Marker, ...] = ()

    @property
    def response_key(self) -> str:
        return self.alias or self.name

    def arguments(self, variables: Mapping[str, Any]) -> dict[str, Any]:
        return {name: resolve_value(value, variables) for name, value in self.args}

    def key(self, variables: Mapping[str, Any]) -> str:
        """Storage slot for this field under the given variables."""
        return field_key(self.name, self.arguments(variables))


type Selection = tuple[Field, ...]


class OperationKind(Enum):
    QUERY = auto()
    MUTATION = auto()
    FRAGMENT = auto()


@dataclass(frozen=True, slots=True)
class Document:
    """A compiled query, mutation or fragment."""

    name: str
    kind: OperationKind
    selection: Selection
    # Fragments only: the type the fragment is declared on.
    typename: str | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "Variable",
    "UnboundVariable",
    "resolve_value",
    "Pairs",
    "pairs",
    "Position",
    "FIRST",
    "LAST",
    "Insert",
    "Remove",
    "Toggle",
    "DeleteEverywhere",
    "Marker",
    "Field",
    "Selection",
    "OperationKind",
    "Document",
)
