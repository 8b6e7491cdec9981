"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

from normcache import QueryResult, Request, Response
from normcache import document as D


# Documents (what a compiler would generate)
ITEM_FIELDS = (D.field("id"), D.field("text"), D.field("completed"))

ALL_ITEMS = D.query(
    "AllItems",
    D.field("items", *ITEM_FIELDS, typename="Item", list_name="All_Items"),
)

ADD_ITEM = D.mutation(
    "AddItem",
    D.field(
        "addItem",
        *ITEM_FIELDS,
        args={"text": D.Variable("text")},
        typename="Item",
        markers=[D.Insert("All_Items", when_not=(("completed", True),))],
    ),
)

CHECK_ITEM = D.mutation(
    "CheckItem",
    D.field(
        "checkItem",
        D.field("id"),
        D.field("completed"),
        args={"id": D.Variable("id")},
        typename="Item",
    ),
)

DELETE_ITEM = D.mutation(
    "DeleteItem",
    D.field(
        "deleteItem",
        D.field("itemID", markers=[D.DeleteEverywhere("Item")]),
        args={"id": D.Variable("id")},
    ),
)


# Fake server
@dataclass(slots=True)
class FakeServer:
    """In-memory todo backend. Texts longer than `max_text` are rejected."""

    items: dict[str, dict[str, Any]] = field(default_factory=lambda: {
        "1": {"__typename": "Item", "id": "1", "text": "Buy milk", "completed": False},
        "2": {"__typename": "Item", "id": "2", "text": "Walk the dog", "completed": True},
    })
    max_text: int = 20
    latency: float = 0.05
    _ids: itertools.count[int] = field(default_factory=lambda: itertools.count(3))

    async def send(self, request: Request) -> Response:
        await asyncio.sleep(self.latency)
        variables = request.variables

        match request.operation:
            case "AllItems":
                return Response({"items": list(self.items.values())})

            case "AddItem":
                if len(variables["text"]) > self.max_text:
                    return Response(errors=({"message": f"text is longer than {self.max_text}"},))
                new = {"__typename": "Item", "id": str(next(self._ids)), "text": variables["text"], "completed": False}
                self.items[new["id"]] = new
                return Response({"addItem": new})

            case "CheckItem":
                found = self.items.get(variables["id"])
                if found is None:
                    return Response(errors=({"message": f"no item {variables['id']}"},))
                found["completed"] = True
                return Response({"checkItem": found})

            case "DeleteItem":
                self.items.pop(variables["id"], None)
                return Response({"deleteItem": {"itemID": variables["id"]}})

        return Response(errors=({"message": f"unknown operation {request.operation}"},))


# Sinks
def render(label: str) -> Callable[[QueryResult], None]:
    def update(result: QueryResult) -> None:
        items = result.data.get("items") or []
        rows = ", ".join(f"{i['text']}{' ✓' if i['completed'] else ''}" for i in items if i)
        print(f"   [{label}] {rows or '(empty)'}{' (partial)' if result.partial else ''}")

    return update


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    logging.basicConfig(level=logging.WARNING, format="   %(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
