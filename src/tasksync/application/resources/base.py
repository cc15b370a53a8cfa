"""
Synced Resource - Optimistic-write and cache-validated-read template.

Every resource family (tasks, groups, labels, workspaces, ...) configures
this class instead of reimplementing the sync pattern:

1. Persist the record locally first (optimistic).
2. If online, send the request. A 2xx response is authoritative and is
   returned to the caller.
3. If offline, or the request failed, queue the same request for replay
   and return the optimistic value.
"""

import logging
from typing import Any, Optional
from urllib.parse import quote, urlencode
from uuid import uuid4

from ...adapters.http.client import ApiClient, classify_status, decode_body, SUCCESS
from ...adapters.http.conditional import ConditionalFetchClient
from ...core.domain.events import EventBus, EntityStored, EntityRemoved
from ...core.domain.models import EntityRecord, require_id
from ...core.exceptions import InvalidRecordError, TransportError
from ...core.ports.connectivity import ConnectivityPort
from ...core.ports.local_store import LocalStorePort
from ..sync.queue import MutationQueue


class SyncedResource:
    """
    Generic sync-backed REST resource.

    Subclasses set:
        name: Logical name, used in cache keys and log messages
        path: Collection path (e.g. "/tasks")
        store_name: Dedicated entity store, or None for resources that are
            cached as a single blob in the meta store
    """

    name: str = "resource"
    path: str = ""
    store_name: Optional[str] = None

    def __init__(
        self,
        api: ApiClient,
        store: LocalStorePort,
        connectivity: ConnectivityPort,
        queue: MutationQueue,
        fetcher: ConditionalFetchClient,
        event_bus: Optional[EventBus] = None,
    ):
        self.api = api
        self.store = store
        self.connectivity = connectivity
        self.queue = queue
        self.fetcher = fetcher
        self.event_bus = event_bus or EventBus()
        self.logger = logging.getLogger(self.__class__.__name__)

    # -------------------------------------------------------------------------
    # URL and cache key builders
    # -------------------------------------------------------------------------

    def collection_url(self, params: Optional[dict[str, Any]] = None) -> str:
        query = self._query(params)
        url = self.api.url(self.path)
        return f"{url}?{query}" if query else url

    def item_url(self, entity_id: Any, *suffix: str) -> str:
        parts = [self.path.rstrip("/"), quote(str(entity_id), safe="")]
        parts.extend(suffix)
        return self.api.url("/".join(parts))

    def cache_key(self, params: Optional[dict[str, Any]] = None) -> str:
        """Cache key for one collection query, e.g. "labels_req_global"."""
        query = self._query(params)
        return f"{self.name}_req_{query or 'global'}"

    @staticmethod
    def _query(params: Optional[dict[str, Any]]) -> str:
        if not params:
            return ""
        return urlencode(sorted((k, v) for k, v in params.items() if v is not None))

    # -------------------------------------------------------------------------
    # Decoding
    # -------------------------------------------------------------------------

    def decode(self, record: Any) -> EntityRecord:
        """
        Validate an outgoing record at the module boundary.

        Returns a shallow copy so later caller mutations do not leak into
        the store or the queue.
        """
        if not isinstance(record, dict):
            raise InvalidRecordError(
                f"{self.name}: expected a JSON object, got {type(record).__name__}"
            )
        return dict(record)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_local(self, entity_id: Any) -> Optional[EntityRecord]:
        if not self.store_name:
            return None
        return self.store.get(self.store_name, entity_id)

    def list_local(self) -> list[EntityRecord]:
        if not self.store_name:
            return []
        return self.store.get_all(self.store_name)

    # Keep below any annotation using the builtin list; this name shadows it
    def list(self, params: Optional[dict[str, Any]] = None, fallback: Any = None) -> Any:
        """
        Read the collection (fresh, cached, or fallback).

        Resources with a dedicated store replace it on every full fetch.
        """
        url = self.collection_url(params)
        key = self.cache_key(params)
        if self.store_name:
            return self.fetcher.fetch_collection(url, key, self.store_name)
        return self.fetcher.fetch_or_cached(url, key, [] if fallback is None else fallback)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create(self, record: Any) -> Any:
        """POST a new record; ids are generated locally when missing."""
        record = self.decode(record)
        if self.store_name and not record.get("id"):
            record["id"] = str(uuid4())
        self._persist(record)
        return self.send(
            "POST", self.collection_url(), record, optimistic=record,
            local_id=record.get("id"),
        )

    def update(self, entity_id: Any, record: Any) -> Any:
        """
        PUT the full record to ``<path>/<id>``.

        Raises:
            InvalidRecordError: If the record carries a different id
        """
        record = self.decode(record)
        if record.get("id") not in (None, "") and str(record["id"]) != str(entity_id):
            raise InvalidRecordError(
                f"{self.name}: record id {record['id']!r} does not match {entity_id!r}"
            )
        record["id"] = entity_id
        self._persist(record)
        return self.send("PUT", self.item_url(entity_id), record, optimistic=record)

    def delete(self, entity_id: Any) -> Any:
        """Remove locally, then DELETE ``<path>/<id>``."""
        if self.store_name:
            self.store.delete(self.store_name, entity_id)
            self.event_bus.publish(EntityRemoved(
                store=self.store_name, entity_id=str(entity_id),
            ))
        return self.send("DELETE", self.item_url(entity_id), None, optimistic={})

    def send(
        self,
        method: str,
        url: str,
        body: Any,
        optimistic: Any,
        local_id: Optional[Any] = None,
    ) -> Any:
        """
        Send a write now if possible, otherwise queue it.

        Args:
            method: HTTP method
            url: Absolute URL
            body: JSON body, or None
            optimistic: Value returned when the server does not answer with
                a body (queued writes, 204 responses)
            local_id: Id the record was stored under locally; dropped when
                the server answers with a record under another id

        Returns:
            The server's response body on success, else ``optimistic``
        """
        if self.connectivity.is_online():
            try:
                response = self.api.request(method, url, json=body)
            except TransportError as e:
                self.logger.warning(f"Network request failed [{method} {url}], queueing: {e}")
            else:
                if classify_status(response.status_code) == SUCCESS:
                    data = decode_body(response, default=optimistic)
                    self._store_confirmed(method, data, local_id)
                    return data
                self.logger.warning(
                    f"{method} {url} failed with HTTP {response.status_code}, queueing"
                )

        self.queue.add_to_queue(url, method, body)
        return optimistic

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _persist(self, record: EntityRecord) -> None:
        if not self.store_name:
            return
        entity_id = require_id(record)
        self.store.put(self.store_name, record)
        self.event_bus.publish(EntityStored(
            store=self.store_name, entity_id=entity_id, optimistic=True,
        ))

    def _store_confirmed(self, method: str, data: Any, local_id: Optional[Any] = None) -> None:
        """Write a server-returned record back over the optimistic copy."""
        if not self.store_name or method not in ("POST", "PUT", "PATCH"):
            return
        if not isinstance(data, dict) or data.get("id") in (None, ""):
            return
        if local_id not in (None, "") and str(local_id) != str(data["id"]):
            self.store.delete(self.store_name, local_id)
            self.event_bus.publish(EntityRemoved(
                store=self.store_name, entity_id=str(local_id),
            ))
            self.logger.debug(f"{self.name}: server replaced id {local_id} with {data['id']}")
        self.store.put(self.store_name, data)
        self.event_bus.publish(EntityStored(
            store=self.store_name, entity_id=str(data["id"]), optimistic=False,
        ))
