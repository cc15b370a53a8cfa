"""
Exceptions - Centralized exception hierarchy for tasksync.
"""

from typing import Optional


class TaskSyncError(Exception):
    """Base exception for all sync engine errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class TransportError(TaskSyncError):
    """No response was received (connection refused, DNS, timeout)."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause=cause)
        self.url = url


class OfflineError(TaskSyncError):
    """An operation that cannot be queued was attempted without connectivity."""


class StoreError(TaskSyncError):
    """The local store failed (disk full, permissions, corruption)."""


class UnknownStoreError(StoreError):
    """A store name outside the fixed schema was used."""

    def __init__(self, store: str):
        super().__init__(f"Unknown store: {store}")
        self.store = store


class InvalidRecordError(TaskSyncError):
    """An entity record is missing its id or is not a JSON object."""


class ConfigurationError(TaskSyncError):
    """Configuration is missing or invalid."""


__all__ = [
    "TaskSyncError",
    "TransportError",
    "OfflineError",
    "StoreError",
    "UnknownStoreError",
    "InvalidRecordError",
    "ConfigurationError",
]
