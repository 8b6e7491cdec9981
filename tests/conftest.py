"""
Shared fixtures: compiled documents, a scripted network, recording sinks.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any

import pytest

from normcache import (
    Cache,
    EntityKey,
    Error,
    Ok,
    QueryResult,
    Request,
    Response,
)
from normcache import document as D

# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

ITEM_FIELDS = (D.field("id"), D.field("text"), D.field("completed"))

ALL_ITEMS = D.query(
    "AllItems",
    D.field("items", *ITEM_FIELDS, typename="Item", list_name="All_Items"),
)

ITEM_COMPLETED = D.query(
    "ItemCompleted",
    D.field(
        "item",
        D.field("id"),
        D.field("completed"),
        args={"id": D.Variable("id")},
        typename="Item",
    ),
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


def item(id: str, *, text: str | None = None, completed: bool = False) -> dict[str, Any]:
    return {
        "__typename": "Item",
        "id": id,
        "text": text if text is not None else f"item {id}",
        "completed": completed,
    }


def item_key(id: str) -> EntityKey:
    return EntityKey("Item", id)


def ids(result: QueryResult, field: str = "items") -> list[str]:
    return [entry["id"] for entry in result.data[field]]


def store_state(cache: Cache) -> dict[EntityKey, dict[str, Any]]:
    """Full copy of every record, for exact before/after comparisons."""
    state: dict[EntityKey, dict[str, Any]] = {}
    for key in cache.store.keys():
        record = cache.store.record(key)
        assert record is not None
        state[key] = dict(record)
    return state


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


def unwrap_ok(result: Any) -> Any:
    match result:
        case Ok(value):
            return value
        case Error(error):
            pytest.fail(f"expected Ok, got Error({error!r})")


def unwrap_error(result: Any) -> Any:
    match result:
        case Error(error):
            return error
        case Ok(value):
            pytest.fail(f"expected Error, got Ok({value!r})")


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


class RecordingSink:
    """Sink that keeps every pushed value."""

    def __init__(self) -> None:
        self.values: list[QueryResult] = []

    def update(self, value: QueryResult) -> None:
        self.values.append(value)

    @property
    def last(self) -> QueryResult:
        return self.values[-1]


class FakeNetwork:
    """
    Scripted transport.

    Responses (or exceptions to raise) are consumed in order. Setting
    `hold()` keeps requests in flight until `release()`.
    """

    def __init__(self, *responses: Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[Request] = []
        self._gate: asyncio.Event | None = None

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        assert self._gate is not None
        self._gate.set()

    async def send(self, request: Request) -> Response:
        self.requests.append(request)
        if self._gate is not None:
            await self._gate.wait()
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def spawn(lazy: Awaitable[Any]) -> asyncio.Task[Any]:
    """Run a lazy result as a task so the test can act while it is in flight."""

    async def run() -> Any:
        return await lazy

    return asyncio.create_task(run())


async def until_sent(network: FakeNetwork, count: int = 1) -> None:
    """Yield to the loop until `count` requests reached the network."""
    for _ in range(100):
        if len(network.requests) >= count:
            return
        await asyncio.sleep(0)
    pytest.fail(f"network saw {len(network.requests)} request(s), expected {count}")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cache() -> Cache:
    return Cache()


@pytest.fixture
def seeded(cache: Cache) -> Cache:
    """Cache holding All_Items = [A, B]."""
    cache.write(ALL_ITEMS, {"items": [item("A"), item("B")]})
    return cache


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
