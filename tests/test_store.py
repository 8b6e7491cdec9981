"""Entity store — normalization, merge, delete, restore."""

from __future__ import annotations

import pytest

from conftest import ALL_ITEMS, ITEM_COMPLETED, item, item_key, store_state
from normcache import MISSING, ROOT, Cache, CacheConfig, EntityKey, Ref, field_key
from normcache import document as D
from normcache.store import EntityStore, Resolver, Snapshot

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> EntityStore:
    return EntityStore(Resolver(CacheConfig()))


ITEM_TEXT = D.query(
    "ItemText",
    D.field("item", D.field("id"), D.field("text"), args={"id": D.Variable("id")}, typename="Item"),
)

VIEWER = D.query(
    "Viewer",
    D.field(
        "viewer",
        D.field("id"),
        D.field("settings", D.field("theme")),
        typename="User",
    ),
)

# ---------------------------------------------------------------------------
# Identity & merge
# ---------------------------------------------------------------------------


def test_same_identity_from_two_queries_is_one_record(store: EntityStore) -> None:
    store.write(ITEM_TEXT.selection, {"item": {"__typename": "Item", "id": "1", "text": "milk"}}, {"id": "1"})
    store.write(
        ITEM_COMPLETED.selection,
        {"item": {"__typename": "Item", "id": "1", "completed": True}},
        {"id": "1"},
    )

    assert store.record(item_key("1")) == {"id": "1", "text": "milk", "completed": True}
    assert [k for k in store.keys() if k.typename == "Item"] == [item_key("1")]


def test_later_write_overwrites_only_same_named_fields(store: EntityStore) -> None:
    store.write(ALL_ITEMS.selection, {"items": [item("1", text="milk")]})
    store.write(ITEM_TEXT.selection, {"item": {"__typename": "Item", "id": "1", "text": "eggs"}}, {"id": "1"})

    assert store.read(item_key("1"), "text") == "eggs"
    assert store.read(item_key("1"), "completed") is False


def test_missing_fields_are_preserved(store: EntityStore) -> None:
    store.write(ALL_ITEMS.selection, {"items": [item("1")]})
    store.write(ALL_ITEMS.selection, {"items": [{"__typename": "Item", "id": "1"}]})

    assert store.read(item_key("1"), "text") == "item 1"


def test_arguments_give_distinct_slots(store: EntityStore) -> None:
    store.write(ITEM_TEXT.selection, {"item": item("1")}, {"id": "1"})
    store.write(ITEM_TEXT.selection, {"item": item("2")}, {"id": "2"})

    assert store.read(ROOT, field_key("item", {"id": "1"})) == Ref(item_key("1"))
    assert store.read(ROOT, field_key("item", {"id": "2"})) == Ref(item_key("2"))


def test_list_field_stores_refs_in_order(store: EntityStore) -> None:
    store.write(ALL_ITEMS.selection, {"items": [item("B"), item("A")]})

    assert store.read(ROOT, "items") == (Ref(item_key("B")), Ref(item_key("A")))


def test_objects_without_identity_are_embedded(store: EntityStore) -> None:
    store.write(
        VIEWER.selection,
        {"viewer": {"__typename": "User", "id": "u1", "settings": {"theme": "dark"}}},
    )

    settings = store.read(EntityKey("User", "u1"), "settings")
    assert isinstance(settings, Ref)
    assert settings.key.embedded
    assert store.read(settings.key, "theme") == "dark"


def test_typename_hint_used_when_response_omits_it(store: EntityStore) -> None:
    store.write(ITEM_TEXT.selection, {"item": {"id": "1", "text": "milk"}}, {"id": "1"})

    assert store.read(item_key("1"), "text") == "milk"


# ---------------------------------------------------------------------------
# Change reporting
# ---------------------------------------------------------------------------


def test_write_reports_changed_slots_only(store: EntityStore) -> None:
    first = store.write(ALL_ITEMS.selection, {"items": [item("1")]})
    assert (item_key("1"), "text") in first
    assert (ROOT, "items") in first

    again = store.write(ALL_ITEMS.selection, {"items": [item("1")]})
    assert again == set()

    changed = store.write(ALL_ITEMS.selection, {"items": [item("1", completed=True)]})
    assert changed == {(item_key("1"), "completed")}


def test_bool_replacing_int_counts_as_change(store: EntityStore) -> None:
    store.put(item_key("1"), "flag", 1)

    assert store.put(item_key("1"), "flag", True)


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


def test_delete_returns_own_slots_and_referrers(store: EntityStore) -> None:
    store.write(ALL_ITEMS.selection, {"items": [item("1"), item("2")]})

    changes = store.delete(item_key("1"))

    assert item_key("1") not in store
    assert (ROOT, "items") in changes
    assert (item_key("1"), "text") in changes
    assert store.read(item_key("1"), "text") is MISSING


def test_delete_unknown_key_is_noop(store: EntityStore) -> None:
    assert store.delete(item_key("nope")) == set()


def test_root_cannot_be_deleted(store: EntityStore) -> None:
    with pytest.raises(ValueError):
        store.delete(ROOT)


# ---------------------------------------------------------------------------
# Snapshot / restore
# ---------------------------------------------------------------------------


def test_restore_returns_store_to_exact_prior_state() -> None:
    cache = Cache()
    cache.write(ALL_ITEMS, {"items": [item("1"), item("2")]})
    before = store_state(cache)

    snapshot = Snapshot()
    cache.store.write(
        ALL_ITEMS.selection,
        {"items": [item("1", text="changed", completed=True), item("3")]},
        snapshot=snapshot,
    )
    cache.store.delete(item_key("2"), snapshot)
    assert store_state(cache) != before

    cache.store.restore(snapshot)

    assert store_state(cache) == before


def test_snapshot_keeps_first_prior_value(store: EntityStore) -> None:
    store.put(item_key("1"), "text", "original")
    snapshot = Snapshot()

    store.put(item_key("1"), "text", "first", snapshot)
    store.put(item_key("1"), "text", "second", snapshot)
    store.restore(snapshot)

    assert store.read(item_key("1"), "text") == "original"


def test_restore_drops_records_created_by_the_write(store: EntityStore) -> None:
    snapshot = Snapshot()
    store.write(ALL_ITEMS.selection, {"items": [item("new")]}, snapshot=snapshot)

    changes = store.restore(snapshot)

    assert item_key("new") not in store
    assert store.read(ROOT, "items") is MISSING
    assert (ROOT, "items") in changes
