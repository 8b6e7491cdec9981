"""
Optimistic updates — show it now, commit or roll back later.

Key concepts:
- optimistic_response = written before the request is sent
- Server error / transport failure → snapshot restored, subscribers pushed
- Success → real data merged over the optimistic values

Level 3: normcache.MutationPipeline
Level 2: kungfu.Result
"""

from kungfu import Ok, Error
from normcache import Cache, CacheConfig, network_from, sink_from
from examples._infra import ALL_ITEMS, ADD_ITEM, FakeServer, banner, render, run


server = FakeServer(max_text=12, latency=0.2)
network = network_from(server.send)

cache = Cache(CacheConfig().with_initial_push(False))
add_item = cache.mutation(ADD_ITEM, network)


def optimistic(text: str) -> dict:
    return {"addItem": {"__typename": "Item", "id": f"tmp-{text}", "text": text, "completed": False}}


async def main() -> None:
    banner("Optimistic: Commit vs Rollback")

    await cache.fetch(ALL_ITEMS, network)
    cache.subscribe(ALL_ITEMS, sink_from(render("list")))

    print("\n1. Accepted by the server:")
    match await add_item.invoke({"text": "Read"}, optimistic_response=optimistic("Read")):
        case Ok(r):
            print(f"   committed (optimistic={r.optimistic})")
        case Error(e):
            print(f"   error: {e.message}")

    print("\n2. Rejected by the server (text too long):")
    text = "Write the novel this year"
    match await add_item.invoke({"text": text}, optimistic_response=optimistic(text)):
        case Ok(_):
            print("   committed?")
        case Error(e):
            print(f"   {e.kind.name}: {e.message} (rolled back: {e.rolled_back})")

    # tmp-* rows were replaced by the server's ids on commit
    print(f"\n   pending mutations: {len(cache.pending)}")
    print("\nDone!")


if __name__ == "__main__":
    run(main)
