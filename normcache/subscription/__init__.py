"""
Subscription — dependency tracking and change propagation.

    from normcache import subscription as Sub

    graph = Sub.SubscriptionGraph(store, registry)
    handle = graph.subscribe(selection, Sub.sink_from(render))
    graph.notify(changes)
"""

from __future__ import annotations

from normcache.subscription._types import (
    QueryResult,
    Sink,
    FunctionalSink,
    sink_from,
    Derived,
    Subscription,
)
from normcache.subscription._derive import derive
from normcache.subscription._graph import SubscriptionGraph

__all__ = (
    "QueryResult",
    "Sink",
    "FunctionalSink",
    "sink_from",
    "Derived",
    "Subscription",
    "derive",
    "SubscriptionGraph",
)
