"""
Todo list — one cache, live queries, list directives.

Key concepts:
- Cache = owned instance (store + lists + subscriptions)
- subscribe() = live query, pushed only when its data changes
- Mutation markers (@list insert, delete) edit lists without refetching

Level 3: normcache.Cache
Level 2: kungfu.Result
"""

from kungfu import Ok, Error
from normcache import Cache, network_from, sink_from
from examples._infra import (
    ALL_ITEMS,
    ADD_ITEM,
    CHECK_ITEM,
    DELETE_ITEM,
    FakeServer,
    banner,
    render,
    run,
)


server = FakeServer()
network = network_from(server.send)


# ═══════════════════════════════════════════════════════════════════════════════
# 1. ONE CACHE — create once, pass it where it is needed
# ═══════════════════════════════════════════════════════════════════════════════

cache = Cache()


# ═══════════════════════════════════════════════════════════════════════════════
# 2. MUTATIONS — bound to the cache and a transport
# ═══════════════════════════════════════════════════════════════════════════════

add_item = cache.mutation(ADD_ITEM, network)
check_item = cache.mutation(CHECK_ITEM, network)
delete_item = cache.mutation(DELETE_ITEM, network)

# How it works:
# WRITE:   response normalized into records, keyed by __typename + id
# MARKERS: @list insert / delete run after the entity data is stored
# NOTIFY:  only subscriptions reading a changed slot are recomputed


async def main() -> None:
    banner("Todo: Live Queries + List Directives")

    print("\n1. Subscribe before any data (partial), then load:")
    handle = cache.subscribe(ALL_ITEMS, sink_from(render("list")))
    match await cache.fetch(ALL_ITEMS, network):
        case Ok(data):
            print(f"   fetched {len(data['items'])} item(s)")
        case Error(e):
            print(f"   error: {e.message}")

    print("\n2. Add an item (inserted by @list marker, no refetch):")
    match await add_item.invoke({"text": "Call mom"}):
        case Ok(r):
            print(f"   added id={r.data['addItem']['id']}")
        case Error(e):
            print(f"   error: {e.message}")

    print("\n3. Check it (entity update reaches the list):")
    await check_item.invoke({"id": "3"})

    print("\n4. Delete item 1 (removed from every list):")
    await delete_item.invoke({"id": "1"})

    print("\n5. Same data again: no push")
    await cache.fetch(ALL_ITEMS, network)

    cache.unsubscribe(handle)
    print("\nDone!")


if __name__ == "__main__":
    run(main)
