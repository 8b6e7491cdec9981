"""
Lists — named, mutation-targetable collections.

    from normcache import lists as Li

    registry = Li.ListRegistry(store)
    registry.register("All_Items", ROOT, ("items",))
    changes = registry.toggle("All_Items", EntityKey("Item", "3"))
"""

from __future__ import annotations

from normcache.lists._types import ListRegistration, FilterContext
from normcache.lists._registry import ListRegistry, Parent

__all__ = (
    "ListRegistration",
    "FilterContext",
    "ListRegistry",
    "Parent",
)
