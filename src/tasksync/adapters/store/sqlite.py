"""
SQLite Local Store - Durable implementation of LocalStorePort.

Usage:
    store = SQLiteLocalStore("~/.tasksync/tasksync.db")
    store.put("tasks", {"id": "T1", "title": "Buy milk"})
    store.get("tasks", "T1")
    store.get_all("write_queue")  # oldest first
    store.close()

The database is opened lazily on first access. Opening runs the schema
script, which only creates stores that are missing, so it is safe to call
any number of times.
"""

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Optional, Union

from ...core.domain.models import dumps, loads, require_id
from ...core.exceptions import StoreError, UnknownStoreError
from ...core.ports.local_store import (
    LocalStorePort,
    StoreKey,
    ENTITY_STORES,
    ALL_STORES,
    WRITE_QUEUE,
    META,
)


SCHEMA_VERSION = 1

_ENTITY_TABLE = """
    CREATE TABLE IF NOT EXISTS {name} (
        id   TEXT PRIMARY KEY,
        body TEXT NOT NULL
    );
"""

_SCHEMA = "".join(_ENTITY_TABLE.format(name=name) for name in ENTITY_STORES) + """
    CREATE TABLE IF NOT EXISTS write_queue (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        url         TEXT    NOT NULL,
        method      TEXT    NOT NULL,
        body        TEXT,
        timestamp   REAL    NOT NULL,
        retry_count INTEGER NOT NULL DEFAULT 0
    );

    CREATE INDEX IF NOT EXISTS idx_write_queue_timestamp
        ON write_queue(timestamp);

    CREATE TABLE IF NOT EXISTS meta (
        key          TEXT PRIMARY KEY,
        value        TEXT,
        validator    TEXT,
        last_updated REAL NOT NULL DEFAULT 0
    );
"""


_META_UPSERT = (
    "INSERT INTO meta (key, value, validator, last_updated) "
    "VALUES (?, ?, ?, ?) "
    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
    "validator = excluded.validator, last_updated = excluded.last_updated"
)


class SQLiteLocalStore(LocalStorePort):
    """
    Store entity collections, the write queue and cache metadata in SQLite.

    One connection is shared by every caller and guarded by a lock, so the
    store can be used from the connectivity monitor thread as well as the
    application thread.
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        """
        Initialize the store (the database is opened on first use).

        Args:
            db_path: Database file path, or ":memory:" for a private
                in-memory database
        """
        self.db_path = str(db_path) if str(db_path) == ":memory:" else str(
            Path(db_path).expanduser()
        )
        self.logger = logging.getLogger("SQLiteLocalStore")
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def open(self) -> None:
        with self._lock:
            if self._conn is not None:
                return
            try:
                if self.db_path != ":memory:":
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self.db_path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                conn.execute("PRAGMA journal_mode=WAL")
                self._migrate(conn)
            except (sqlite3.Error, OSError) as e:
                raise StoreError(f"Could not open local store {self.db_path}: {e}", cause=e)
            self._conn = conn
            self.logger.info(f"Local store opened: {self.db_path}")

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
            self.logger.debug("Local store closed")

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _migrate(self, conn: sqlite3.Connection) -> None:
        version = conn.execute("PRAGMA user_version").fetchone()[0]
        conn.executescript(_SCHEMA)
        if version < SCHEMA_VERSION:
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
            self.logger.debug(f"Schema migrated from v{version} to v{SCHEMA_VERSION}")
        conn.commit()

    def __enter__(self) -> "SQLiteLocalStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # LocalStorePort Implementation
    # -------------------------------------------------------------------------

    def get(self, store: str, key: StoreKey) -> Optional[dict[str, Any]]:
        self._check_store(store)
        if store == WRITE_QUEUE:
            sql = "SELECT * FROM write_queue WHERE id = ?"
        elif store == META:
            sql = "SELECT * FROM meta WHERE key = ?"
        else:
            sql = f"SELECT body FROM {store} WHERE id = ?"

        rows = self._query(sql, (self._key(store, key),))
        row = rows[0] if rows else None
        if row is None:
            return None
        return self._decode(store, row)

    def get_all(self, store: str) -> list[dict[str, Any]]:
        self._check_store(store)
        if store == WRITE_QUEUE:
            sql = "SELECT * FROM write_queue ORDER BY timestamp ASC, id ASC"
        elif store == META:
            sql = "SELECT * FROM meta ORDER BY key ASC"
        else:
            sql = f"SELECT body FROM {store} ORDER BY rowid ASC"

        rows = self._query(sql)
        return [self._decode(store, row) for row in rows]

    def put(self, store: str, record: dict[str, Any]) -> StoreKey:
        self._check_store(store)
        if store == WRITE_QUEUE:
            return self._put_queue_item(record)

        if store == META:
            self._execute(_META_UPSERT, self._meta_params(record))
            return record["key"]

        record_id = require_id(record)
        # Upsert keeps the original rowid, so get_all stays in insertion order
        self._execute(
            f"INSERT INTO {store} (id, body) VALUES (?, ?) "
            f"ON CONFLICT(id) DO UPDATE SET body = excluded.body",
            (record_id, json.dumps(record)),
        )
        return record_id

    def delete(self, store: str, key: StoreKey) -> None:
        self._check_store(store)
        column = "key" if store == META else "id"
        self._execute(
            f"DELETE FROM {store} WHERE {column} = ?",
            (self._key(store, key),),
        )

    def clear(self, store: str) -> None:
        self._check_store(store)
        self._execute(f"DELETE FROM {store}")

    def replace_all(
        self,
        store: str,
        records: list[dict[str, Any]],
        meta: Optional[list[dict[str, Any]]] = None,
    ) -> int:
        """
        Clear a collection, insert the given records and upsert the ``meta``
        rows describing them, all in one transaction.

        Returns:
            Number of records written
        """
        self._check_store(store)
        if store not in ENTITY_STORES:
            raise StoreError(f"replace_all is only supported for entity stores, not {store}")

        rows = [(require_id(r), json.dumps(r)) for r in records]
        meta_rows = [self._meta_params(row) for row in meta or []]
        with self._lock:
            conn = self._connection()
            try:
                with conn:
                    conn.execute(f"DELETE FROM {store}")
                    conn.executemany(
                        f"INSERT OR REPLACE INTO {store} (id, body) VALUES (?, ?)",
                        rows,
                    )
                    conn.executemany(_META_UPSERT, meta_rows)
            except sqlite3.Error as e:
                raise StoreError(f"Replacing {store} failed: {e}", cause=e)
        return len(rows)

    def count(self, store: str) -> int:
        self._check_store(store)
        return self._query(f"SELECT COUNT(*) FROM {store}")[0][0]

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _meta_params(self, record: dict[str, Any]) -> tuple:
        return (
            record["key"],
            dumps(record.get("value")),
            record.get("validator"),
            record.get("last_updated") or 0.0,
        )

    def _put_queue_item(self, record: dict[str, Any]) -> int:
        values = (
            record["url"],
            record["method"],
            dumps(record.get("body")),
            record["timestamp"],
            record.get("retry_count") or 0,
        )
        if record.get("id") is not None:
            self._execute(
                "INSERT OR REPLACE INTO write_queue "
                "(id, url, method, body, timestamp, retry_count) VALUES (?, ?, ?, ?, ?, ?)",
                (record["id"],) + values,
            )
            return int(record["id"])

        return self._execute(
            "INSERT INTO write_queue (url, method, body, timestamp, retry_count) "
            "VALUES (?, ?, ?, ?, ?)",
            values,
        )

    def _decode(self, store: str, row: sqlite3.Row) -> dict[str, Any]:
        if store == WRITE_QUEUE:
            return {
                "id": row["id"],
                "url": row["url"],
                "method": row["method"],
                "body": loads(row["body"]),
                "timestamp": row["timestamp"],
                "retry_count": row["retry_count"],
            }
        if store == META:
            return {
                "key": row["key"],
                "value": loads(row["value"]),
                "validator": row["validator"],
                "last_updated": row["last_updated"],
            }
        return json.loads(row["body"])

    def _key(self, store: str, key: StoreKey) -> StoreKey:
        if store == WRITE_QUEUE:
            return int(key)
        return str(key)

    def _check_store(self, store: str) -> None:
        if store not in ALL_STORES:
            raise UnknownStoreError(store)

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            self.open()
        return self._conn

    def _execute(self, sql: str, params: tuple = ()) -> Optional[int]:
        """Run one write statement and commit. Returns the last row id."""
        with self._lock:
            conn = self._connection()
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.lastrowid
            except sqlite3.Error as e:
                conn.rollback()
                raise StoreError(f"Local store operation failed: {e}", cause=e)

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            conn = self._connection()
            try:
                return conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Local store query failed: {e}", cause=e)
