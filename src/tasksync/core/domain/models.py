"""
Domain Models - Records persisted by the sync engine.

The engine is resource-agnostic: an entity is any JSON object with a stable
``id``. Only the few shapes the engine itself owns (cache metadata, queue
items, replay results) are typed here.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..exceptions import InvalidRecordError


EntityRecord = dict[str, Any]
JSONValue = Any


def require_id(record: Any) -> str:
    """
    Validate an entity record at a module boundary.

    Args:
        record: Decoded JSON payload

    Returns:
        The record id as a string

    Raises:
        InvalidRecordError: If the record is not an object or has no id
    """
    if not isinstance(record, dict):
        raise InvalidRecordError(
            f"Expected a JSON object, got {type(record).__name__}"
        )
    record_id = record.get("id")
    if record_id is None or record_id == "":
        raise InvalidRecordError("Record has no id")
    return str(record_id)


def dumps(value: JSONValue) -> Optional[str]:
    """Serialize a JSON value for storage; ``None`` stays ``None``."""
    if value is None:
        return None
    return json.dumps(value, separators=(",", ":"))


def loads(text: Optional[str]) -> JSONValue:
    if text is None:
        return None
    return json.loads(text)


@dataclass
class CacheMeta:
    """
    One row per logical read endpoint (e.g. "settings_general").

    A validator is only meaningful next to the value it describes; a row
    with a validator but no value must never produce a conditional request.
    """

    key: str
    value: JSONValue = None
    validator: Optional[str] = None
    last_updated: float = 0.0

    @property
    def has_value(self) -> bool:
        return self.value is not None

    @property
    def is_valid_for_condition(self) -> bool:
        """True when the validator can safely be sent to the server."""
        return bool(self.validator) and self.has_value

    def to_row(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "value": self.value,
            "validator": self.validator,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_row(cls, row: Optional[dict[str, Any]]) -> Optional["CacheMeta"]:
        if row is None:
            return None
        return cls(
            key=row["key"],
            value=row.get("value"),
            validator=row.get("validator"),
            last_updated=row.get("last_updated") or 0.0,
        )


@dataclass
class QueueItem:
    """A write that has not been confirmed by the server yet."""

    url: str
    method: str
    body: JSONValue = None
    timestamp: float = 0.0
    retry_count: int = 0
    id: Optional[int] = None

    def to_row(self) -> dict[str, Any]:
        row = {
            "url": self.url,
            "method": self.method,
            "body": self.body,
            "timestamp": self.timestamp,
            "retry_count": self.retry_count,
        }
        if self.id is not None:
            row["id"] = self.id
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "QueueItem":
        return cls(
            id=row.get("id"),
            url=row["url"],
            method=row["method"],
            body=row.get("body"),
            timestamp=row.get("timestamp") or 0.0,
            retry_count=row.get("retry_count") or 0,
        )

    def __str__(self) -> str:
        return f"#{self.id} {self.method} {self.url}"


class MutationOutcome(Enum):
    """What happened to a queue item during one replay attempt."""

    CONFIRMED = "confirmed"  # 2xx, deleted
    REJECTED = "rejected"  # 4xx, deleted
    RETAINED = "retained"  # 5xx, kept for the next replay
    HALTED = "halted"  # no response, pass stopped


@dataclass
class ReplayResult:
    """Result of one pass over the mutation queue."""

    attempted: int = 0
    confirmed: int = 0
    rejected: int = 0
    retained: int = 0
    remaining: int = 0
    halted: bool = False
    skipped_offline: bool = False
    deferred: bool = False  # another pass was running and will re-run
    errors: list[str] = field(default_factory=list)

    @property
    def drained(self) -> bool:
        return self.remaining == 0 and not (self.skipped_offline or self.deferred)

    def record(self, outcome: MutationOutcome) -> None:
        """Count one item outcome."""
        if outcome is MutationOutcome.CONFIRMED:
            self.confirmed += 1
        elif outcome is MutationOutcome.REJECTED:
            self.rejected += 1
        elif outcome is MutationOutcome.RETAINED:
            self.retained += 1
        else:
            self.halted = True

    def add_error(self, error: str) -> None:
        self.errors.append(error)


@dataclass
class InitialData:
    """Task read model: flat task list distributed into buckets."""

    groups: list[EntityRecord] = field(default_factory=list)
    dump_tasks: list[EntityRecord] = field(default_factory=list)
    templates: list[EntityRecord] = field(default_factory=list)
    available_labels: list[EntityRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "groups": self.groups,
            "dumpTasks": self.dump_tasks,
            "templates": self.templates,
            "availableLabels": self.available_labels,
        }
