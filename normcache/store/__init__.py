"""
Store — normalized entity storage and identity resolution.

    from normcache import store as St

    store = St.EntityStore(St.Resolver(CacheConfig()))
    changes = store.write(selection, response_data)
"""

from __future__ import annotations

from normcache.store._resolver import Resolver
from normcache.store._snapshot import Snapshot
from normcache.store._store import EntityStore, references

__all__ = (
    "Resolver",
    "Snapshot",
    "EntityStore",
    "references",
)
