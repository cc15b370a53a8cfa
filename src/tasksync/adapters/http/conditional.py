"""
Conditional Fetch Client - Cache-validated reads with offline fallback.

Every read goes through one of two entry points:

- ``fetch_or_cached`` for small values stored whole in the ``meta`` store
  (settings, notifications, calendar accounts)
- ``fetch_collection`` for large, individually addressable collections
  backed by their own entity store (tasks, groups, labels, workspaces)

Both always return a value. Offline, transport failures, HTTP errors and
"304 Not Modified" are answered from the local copy, or from the caller's
fallback when nothing is cached.
"""

import logging
import time
from typing import Any, Optional

from ...core.domain.events import EventBus, CacheServed, CollectionRefreshed
from ...core.domain.models import CacheMeta, EntityRecord
from ...core.exceptions import TransportError
from ...core.ports.connectivity import ConnectivityPort
from ...core.ports.local_store import LocalStorePort, META
from .client import ApiClient, classify_status, decode_body, NOT_MODIFIED, SUCCESS


OFFLINE = "offline"
ERROR = "error"


def snapshot_key(store: str) -> str:
    """Meta key recording which cache key a collection's contents came from."""
    return f"snapshot:{store}"


class ConditionalFetchClient:
    """
    Performs ETag-validated reads against the server.

    A validator is only ever sent when the data it describes is held
    locally; otherwise a 304 would "confirm" data the client lacks.
    """

    def __init__(
        self,
        api: ApiClient,
        store: LocalStorePort,
        connectivity: ConnectivityPort,
        event_bus: Optional[EventBus] = None,
    ):
        self.api = api
        self.store = store
        self.connectivity = connectivity
        self.event_bus = event_bus or EventBus()
        self.logger = logging.getLogger("ConditionalFetchClient")

    # -------------------------------------------------------------------------
    # Single-value reads
    # -------------------------------------------------------------------------

    def fetch_or_cached(self, url: str, cache_key: str, fallback: Any) -> Any:
        """
        Read a value, validating the cached copy with the server when online.

        Args:
            url: Resource URL or path
            cache_key: Logical cache name (meta store key)
            fallback: Value returned when nothing is cached and the
                network cannot provide fresh data

        Returns:
            Fresh data, cached data, or ``fallback``. Never raises for
            network or HTTP failures.
        """
        meta = self.get_meta(cache_key)

        if not self.connectivity.is_online():
            return self._serve_cached(meta, cache_key, fallback, OFFLINE)

        validator = meta.validator if meta and meta.is_valid_for_condition else None

        try:
            response = self.api.get(url, validator=validator)
        except TransportError as e:
            self.logger.warning(f"Fetch failed for {cache_key}, using cache: {e}")
            return self._serve_cached(meta, cache_key, fallback, ERROR)

        outcome = classify_status(response.status_code)

        if outcome == NOT_MODIFIED:
            return self._serve_cached(meta, cache_key, fallback, NOT_MODIFIED)

        if outcome == SUCCESS:
            data = decode_body(response)
            if data is None:
                self.logger.warning(f"Empty or invalid body for {cache_key}, using cache")
                return self._serve_cached(meta, cache_key, fallback, ERROR)

            self.store.put(META, CacheMeta(
                key=cache_key,
                value=data,
                validator=response.headers.get("ETag"),
                last_updated=time.time(),
            ).to_row())
            return data

        self.logger.warning(
            f"Fetch failed for {cache_key}: HTTP {response.status_code}, using cache"
        )
        return self._serve_cached(meta, cache_key, fallback, ERROR)

    # -------------------------------------------------------------------------
    # Collection reads
    # -------------------------------------------------------------------------

    def fetch_collection(
        self,
        url: str,
        cache_key: str,
        store: str,
    ) -> list[EntityRecord]:
        """
        Read a full collection into its dedicated entity store.

        A successful response replaces the store wholesale. Every other
        outcome returns the store's current contents.

        Args:
            url: Collection URL or path
            cache_key: Logical cache name for this query
            store: Entity store holding the collection

        Returns:
            List of records. Never raises for network or HTTP failures.
        """
        meta = self.get_meta(cache_key)

        if not self.connectivity.is_online():
            return self._serve_collection(store, cache_key, OFFLINE)

        validator = None
        if meta and meta.validator and self.holds_snapshot(store, cache_key):
            validator = meta.validator

        try:
            response = self.api.get(url, validator=validator)
        except TransportError as e:
            self.logger.warning(f"Fetch failed for {cache_key}, using local {store}: {e}")
            return self._serve_collection(store, cache_key, ERROR)

        outcome = classify_status(response.status_code)

        if outcome == NOT_MODIFIED:
            return self._serve_collection(store, cache_key, NOT_MODIFIED)

        if outcome == SUCCESS:
            data = decode_body(response)
            if not isinstance(data, list):
                self.logger.warning(f"Expected a list for {cache_key}, using local {store}")
                return self._serve_collection(store, cache_key, ERROR)

            records = self._valid_records(data, cache_key)
            now = time.time()
            # The snapshot marker commits with the records it describes
            count = self.store.replace_all(store, records, meta=[
                CacheMeta(
                    key=cache_key,
                    validator=response.headers.get("ETag"),
                    last_updated=now,
                ).to_row(),
                CacheMeta(key=snapshot_key(store), value=cache_key, last_updated=now).to_row(),
            ])

            self.logger.debug(f"Refreshed {store} from {cache_key}: {count} records")
            self.event_bus.publish(CollectionRefreshed(
                store=store, cache_key=cache_key, count=count,
            ))
            return records

        self.logger.warning(
            f"Fetch failed for {cache_key}: HTTP {response.status_code}, using local {store}"
        )
        return self._serve_collection(store, cache_key, ERROR)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def get_meta(self, cache_key: str) -> Optional[CacheMeta]:
        return CacheMeta.from_row(self.store.get(META, cache_key))

    def holds_snapshot(self, store: str, cache_key: str) -> bool:
        """True if ``store`` currently holds the snapshot fetched for ``cache_key``."""
        marker = self.get_meta(snapshot_key(store))
        return marker is not None and marker.value == cache_key

    def _serve_cached(
        self,
        meta: Optional[CacheMeta],
        cache_key: str,
        fallback: Any,
        source: str,
    ) -> Any:
        self.event_bus.publish(CacheServed(cache_key=cache_key, source=source))
        if meta is not None and meta.has_value:
            return meta.value
        return fallback

    def _serve_collection(self, store: str, cache_key: str, source: str) -> list[EntityRecord]:
        self.event_bus.publish(CacheServed(cache_key=cache_key, source=source))
        return self.store.get_all(store)

    def _valid_records(self, data: list[Any], cache_key: str) -> list[EntityRecord]:
        records = []
        for item in data:
            if isinstance(item, dict) and item.get("id") not in (None, ""):
                records.append(item)
            else:
                self.logger.warning(f"Skipping record without id in {cache_key}")
        return records
