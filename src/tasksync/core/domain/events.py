"""
Sync Events - Things that happened inside the sync engine.

Events are immutable records of something that occurred. UI layers
subscribe to them to re-render without the engine depending on any
particular UI framework.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4


@dataclass(frozen=True)
class SyncEvent:
    """Base class for all sync events."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def event_type(self) -> str:
        """Get the event type name."""
        return self.__class__.__name__


@dataclass(frozen=True)
class EntityStored(SyncEvent):
    """Event: A record was written to a local collection."""

    store: str = ""
    entity_id: str = ""
    optimistic: bool = True  # False when the record came back from the server


@dataclass(frozen=True)
class EntityRemoved(SyncEvent):
    """Event: A record was deleted from a local collection."""

    store: str = ""
    entity_id: str = ""


@dataclass(frozen=True)
class CollectionRefreshed(SyncEvent):
    """Event: A local collection was replaced by a full server snapshot."""

    store: str = ""
    cache_key: str = ""
    count: int = 0


@dataclass(frozen=True)
class CacheServed(SyncEvent):
    """Event: A read was answered from the local copy."""

    cache_key: str = ""
    source: str = "offline"  # offline, not_modified, error


@dataclass(frozen=True)
class MutationQueued(SyncEvent):
    """Event: A write was appended to the mutation queue."""

    item_id: Optional[int] = None
    url: str = ""
    method: str = ""


@dataclass(frozen=True)
class MutationConfirmed(SyncEvent):
    """Event: A queued write was accepted by the server."""

    item_id: Optional[int] = None
    url: str = ""
    method: str = ""
    status: int = 200


@dataclass(frozen=True)
class MutationRejected(SyncEvent):
    """Event: A queued write was refused with a client error and dropped."""

    item_id: Optional[int] = None
    url: str = ""
    method: str = ""
    status: int = 400


@dataclass(frozen=True)
class MutationRetained(SyncEvent):
    """Event: A queued write failed server-side and stays queued."""

    item_id: Optional[int] = None
    url: str = ""
    method: str = ""
    status: int = 500


@dataclass(frozen=True)
class ReplayStarted(SyncEvent):
    """Event: A replay pass started."""

    pending: int = 0


@dataclass(frozen=True)
class ReplayCompleted(SyncEvent):
    """Event: A replay pass finished."""

    confirmed: int = 0
    rejected: int = 0
    retained: int = 0
    halted: bool = False
    remaining: int = 0


@dataclass(frozen=True)
class ConnectivityChanged(SyncEvent):
    """Event: The network became reachable or unreachable."""

    online: bool = False


Handler = Callable[[SyncEvent], None]


class EventBus:
    """
    Simple event bus for publishing and subscribing to sync events.

    Subscribing to ``SyncEvent`` receives every event. A failing handler
    is logged and does not affect the publisher or other handlers.
    """

    def __init__(self, keep_history: bool = True):
        self._handlers: dict[type, list[Handler]] = {}
        self._history: list[SyncEvent] = []
        self._keep_history = keep_history
        self.logger = logging.getLogger("EventBus")

    def subscribe(self, event_type: type, handler: Handler) -> None:
        """Subscribe a handler to an event type."""
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Handler) -> bool:
        """Remove a handler. Returns False if it was not subscribed."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def publish(self, event: SyncEvent) -> None:
        """Publish an event to all subscribers."""
        if self._keep_history:
            self._history.append(event)

        handlers = list(self._handlers.get(type(event), []))
        if type(event) is not SyncEvent:
            handlers.extend(self._handlers.get(SyncEvent, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                self.logger.error(f"Handler for {event.event_type} failed: {e}")

    def get_history(self, event_type: Optional[type] = None) -> list[SyncEvent]:
        """Get published events, optionally filtered by type."""
        if event_type is None:
            return self._history.copy()
        return [e for e in self._history if isinstance(e, event_type)]

    def clear_history(self) -> None:
        """Clear event history."""
        self._history.clear()
