"""
normcache — normalized client cache for GraphQL applications.

    from normcache import Cache, CacheConfig, sink_from
    from normcache import document as D

    cache = Cache()
    handle = cache.subscribe(ALL_ITEMS, sink_from(render))
    result = await cache.mutation(ADD_ITEM, network).invoke({"text": "milk"})
"""

from normcache import document
from normcache import store
from normcache import lists
from normcache import subscription
from normcache import mutation
from normcache._types import (
    Result,
    Ok,
    Error,
    LazyCoroResult,
    EntityKey,
    ROOT,
    Ref,
    MISSING,
    Dependency,
    Changes,
    field_key,
)
from normcache._config import CacheConfig
from normcache._errors import (
    IdentityResolutionFailure,
    ListResolutionError,
    DuplicateListRegistration,
    FailureKind,
    OperationFailure,
    MutationFailure,
)
from normcache._network import (
    Request,
    Response,
    Network,
    network_from,
)
from normcache.subscription import QueryResult, Sink, Subscription, sink_from
from normcache.mutation import MutationPipeline, MutationResult, MutationState
from normcache._cache import Cache

__version__ = "0.1.0"

__all__ = (
    # Namespaces
    "document",
    "store",
    "lists",
    "subscription",
    "mutation",
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Identity
    "EntityKey",
    "ROOT",
    "Ref",
    "MISSING",
    "Dependency",
    "Changes",
    "field_key",
    # Config
    "CacheConfig",
    # Errors
    "IdentityResolutionFailure",
    "ListResolutionError",
    "DuplicateListRegistration",
    "FailureKind",
    "OperationFailure",
    "MutationFailure",
    # Network
    "Request",
    "Response",
    "Network",
    "network_from",
    # Subscriptions
    "QueryResult",
    "Sink",
    "Subscription",
    "sink_from",
    # Mutations
    "MutationPipeline",
    "MutationResult",
    "MutationState",
    # Facade
    "Cache",
)
