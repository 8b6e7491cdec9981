"""
Document construction — what generated artifacts call.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from normcache.document._types import (
    Document,
    Field,
    Marker,
    OperationKind,
    Pairs,
    pairs,
)

# ═══════════════════════════════════════════════════════════════════════════════
# field() — Primary Constructor
# ═══════════════════════════════════════════════════════════════════════════════


def field(
    name: str,
    *selection: Field,
    alias: str | None = None,
    args: Mapping[str, Any] | Pairs | None = None,
    typename: str | None = None,
    list_name: str | None = None,
    markers: tuple[Marker, ...] | list[Marker] = (),
) -> Field:
    """
    Create a selected field.

    Scalar fields take no sub-selection; object fields pass their children
    positionally.

    Example:
        from normcache import document as D

        items = D.field(
            "items",
            D.field("id"),
            D.field("text"),
            D.field("completed"),
            args={"completed": D.Variable("completed")},
            typename="Item",
            list_name="All_Items",
        )
    """
    return Field(
        name=name,
        alias=alias,
        args=pairs(args),
        selection=selection or None,
        typename=typename,
        list_name=list_name,
        markers=tuple(markers),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Documents
# ═══════════════════════════════════════════════════════════════════════════════


def query(name: str, *selection: Field) -> Document:
    """Compiled query document."""
    return Document(name=name, kind=OperationKind.QUERY, selection=selection)


def mutation(name: str, *selection: Field) -> Document:
    """Compiled mutation document."""
    return Document(name=name, kind=OperationKind.MUTATION, selection=selection)


def fragment(name: str, typename: str, *selection: Field) -> Document:
    """
    Compiled fragment document.

    Fragments are subscribed at a specific record:

        cache.subscribe(user_info, sink, root=EntityKey("User", "1"))
    """
    return Document(
        name=name,
        kind=OperationKind.FRAGMENT,
        selection=selection,
        typename=typename,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = ("field", "query", "mutation", "fragment")
