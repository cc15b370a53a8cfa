"""
Ports - Abstract interfaces for external dependencies.

Ports define the contracts that adapters must implement.
This enables dependency inversion and easy testing.
"""

from .local_store import (
    LocalStorePort,
    StoreKey,
    TASKS,
    GROUPS,
    LABELS,
    WORKSPACES,
    WRITE_QUEUE,
    META,
    ENTITY_STORES,
    ALL_STORES,
)
from .connectivity import ConnectivityPort, ConnectivityCallback
from .token_provider import TokenProvider, StaticTokenProvider, FileTokenProvider
from .config_provider import (
    ConfigProviderPort,
    AppConfig,
    ApiConfig,
    StoreConfig,
    SyncConfig,
)

__all__ = [
    "LocalStorePort",
    "StoreKey",
    "TASKS",
    "GROUPS",
    "LABELS",
    "WORKSPACES",
    "WRITE_QUEUE",
    "META",
    "ENTITY_STORES",
    "ALL_STORES",
    "ConnectivityPort",
    "ConnectivityCallback",
    "TokenProvider",
    "StaticTokenProvider",
    "FileTokenProvider",
    "ConfigProviderPort",
    "AppConfig",
    "ApiConfig",
    "StoreConfig",
    "SyncConfig",
]
