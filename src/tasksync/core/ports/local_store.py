"""
Local Store Port - Abstract interface for durable client-side storage.

Stores are fixed at schema-definition time:

- entity collections keyed by the record's ``id``
- ``write_queue`` keyed by an auto-increment ``id``, ordered by ``timestamp``
- ``meta`` keyed by the logical cache name
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Union


TASKS = "tasks"
GROUPS = "groups"
LABELS = "labels"
WORKSPACES = "workspaces"
WRITE_QUEUE = "write_queue"
META = "meta"

ENTITY_STORES = (TASKS, GROUPS, LABELS, WORKSPACES)
ALL_STORES = ENTITY_STORES + (WRITE_QUEUE, META)

StoreKey = Union[str, int]


class LocalStorePort(ABC):
    """
    Abstract interface for the persistent local store.

    Lookups never raise for missing keys: ``get`` returns None and
    ``get_all`` returns an empty list. Using a store name outside
    ``ALL_STORES`` raises UnknownStoreError.
    """

    @property
    def store_names(self) -> tuple[str, ...]:
        return ALL_STORES

    @abstractmethod
    def open(self) -> None:
        """Open the database and create missing stores. Idempotent."""
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    @abstractmethod
    def get(self, store: str, key: StoreKey) -> Optional[dict[str, Any]]:
        """Get one record by key, or None."""
        ...

    @abstractmethod
    def get_all(self, store: str) -> list[dict[str, Any]]:
        """Get every record in a store."""
        ...

    @abstractmethod
    def put(self, store: str, record: dict[str, Any]) -> StoreKey:
        """
        Insert or overwrite a record.

        Returns:
            The record's key (the generated id for the write queue)
        """
        ...

    @abstractmethod
    def delete(self, store: str, key: StoreKey) -> None:
        """Delete a record. Missing keys are ignored."""
        ...

    @abstractmethod
    def clear(self, store: str) -> None:
        """Delete every record in a store."""
        ...

    def replace_all(
        self,
        store: str,
        records: list[dict[str, Any]],
        meta: Optional[list[dict[str, Any]]] = None,
    ) -> int:
        """
        Replace a whole collection with a new snapshot.

        ``meta`` rows describing the snapshot (validators, snapshot
        markers) are written with it. Adapters with transactions should
        override this so readers never observe the records without their
        meta rows, or a half-written collection.

        Returns:
            Number of records written
        """
        meta = meta or []
        for row in meta:
            self.delete(META, row["key"])
        self.clear(store)
        for record in records:
            self.put(store, record)
        for row in meta:
            self.put(META, row)
        return len(records)
