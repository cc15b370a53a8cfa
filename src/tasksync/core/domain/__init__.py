"""
Domain - Records, queue items, cache metadata and events.
"""

from .models import (
    EntityRecord,
    JSONValue,
    CacheMeta,
    QueueItem,
    MutationOutcome,
    ReplayResult,
    InitialData,
    require_id,
)
from .events import (
    SyncEvent,
    EntityStored,
    EntityRemoved,
    CollectionRefreshed,
    CacheServed,
    MutationQueued,
    MutationConfirmed,
    MutationRejected,
    MutationRetained,
    ReplayStarted,
    ReplayCompleted,
    ConnectivityChanged,
    EventBus,
)

__all__ = [
    "EntityRecord",
    "JSONValue",
    "CacheMeta",
    "QueueItem",
    "MutationOutcome",
    "ReplayResult",
    "InitialData",
    "require_id",
    "SyncEvent",
    "EntityStored",
    "EntityRemoved",
    "CollectionRefreshed",
    "CacheServed",
    "MutationQueued",
    "MutationConfirmed",
    "MutationRejected",
    "MutationRetained",
    "ReplayStarted",
    "ReplayCompleted",
    "ConnectivityChanged",
    "EventBus",
]
