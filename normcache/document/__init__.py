"""
Document — compiled selections and list-operation markers.

    from normcache import document as D

    all_items = D.query(
        "AllItems",
        D.field("items", D.field("id"), D.field("text"), typename="Item", list_name="All_Items"),
    )

    add_item = D.mutation(
        "AddItem",
        D.field(
            "addItem",
            D.field("id"),
            D.field("text"),
            args={"text": D.Variable("text")},
            typename="Item",
            markers=[D.Insert("All_Items", when_not=(("completed", True),))],
        ),
    )
"""

from __future__ import annotations

from normcache.document._types import (
    Variable,
    UnboundVariable,
    resolve_value,
    Pairs,
    pairs,
    Position,
    FIRST,
    LAST,
    Insert,
    Remove,
    Toggle,
    DeleteEverywhere,
    Marker,
    Field,
    Selection,
    OperationKind,
    Document,
)
from normcache.document._build import field, query, mutation, fragment

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
    "field",
    "query",
    "mutation",
    "fragment",
)
