"""
Adapters - Concrete implementations of ports.

This module contains implementations for:
- Store: SQLite local store
- HTTP: REST client and conditional (ETag) fetch client
- Connectivity: probing monitor and manually driven signal
- Config: Environment variables
"""

from .store import SQLiteLocalStore
from .http import ApiClient, ConditionalFetchClient
from .connectivity import ConnectivityMonitor, ManualConnectivity
from .config import EnvironmentConfigProvider

__all__ = [
    "SQLiteLocalStore",
    "ApiClient",
    "ConditionalFetchClient",
    "ConnectivityMonitor",
    "ManualConnectivity",
    "EnvironmentConfigProvider",
]
