"""Query execution through the cache."""

from __future__ import annotations

import pytest

from conftest import ADD_ITEM, ALL_ITEMS, FakeNetwork, RecordingSink, ids, item, unwrap_error, unwrap_ok
from normcache import Cache, FailureKind, Request, Response, network_from


@pytest.mark.asyncio
async def test_fetch_writes_and_notifies(cache: Cache, sink: RecordingSink) -> None:
    cache.subscribe(ALL_ITEMS, sink)
    network = FakeNetwork(Response({"items": [item("A"), item("B")]}))

    data = unwrap_ok(await cache.fetch(ALL_ITEMS, network))

    assert data == {"items": [item("A"), item("B")]}
    assert sink.values[0].partial
    assert ids(sink.last) == ["A", "B"]
    assert network.requests[0].operation == "AllItems"


@pytest.mark.asyncio
async def test_refetch_pushes_only_on_change(cache: Cache, sink: RecordingSink) -> None:
    cache.subscribe(ALL_ITEMS, sink)
    network = FakeNetwork(
        Response({"items": [item("A")]}),
        Response({"items": [item("A")]}),
        Response({"items": [item("A", completed=True)]}),
    )

    for _ in range(3):
        unwrap_ok(await cache.fetch(ALL_ITEMS, network))

    assert len(sink.values) == 3
    assert sink.last.data["items"][0]["completed"] is True


@pytest.mark.asyncio
async def test_server_errors_leave_the_store_untouched(seeded: Cache) -> None:
    network = FakeNetwork(Response(errors=({"message": "forbidden"}, {"message": "try later"})))

    failure = unwrap_error(await seeded.fetch(ALL_ITEMS, network))

    assert failure.kind is FailureKind.SERVER
    assert failure.message == "forbidden; try later"
    assert len(failure.errors) == 2
    assert ids(seeded.read(ALL_ITEMS)) == ["A", "B"]


@pytest.mark.asyncio
async def test_functional_network(cache: Cache) -> None:
    seen: list[Request] = []

    async def send(request: Request) -> Response:
        seen.append(request)
        return Response({"items": []})

    unwrap_ok(await cache.fetch(ALL_ITEMS, network_from(send)))

    assert [r.operation for r in seen] == ["AllItems"]
    assert cache.read(ALL_ITEMS).data == {"items": []}


@pytest.mark.asyncio
async def test_empty_response(cache: Cache) -> None:
    failure = unwrap_error(await cache.fetch(ALL_ITEMS, FakeNetwork(Response())))

    assert failure.kind is FailureKind.EMPTY


def test_only_queries_can_be_fetched(cache: Cache) -> None:
    with pytest.raises(ValueError):
        cache.fetch(ADD_ITEM, FakeNetwork())
