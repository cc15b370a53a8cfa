"""
Config Provider Port - Abstract interface for configuration sources.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_DB_PATH = "~/.tasksync/tasksync.db"


@dataclass
class ApiConfig:
    """Server connection settings."""

    url: str = DEFAULT_API_URL
    token: Optional[str] = None
    token_file: Optional[str] = None
    timeout: float = 30.0


@dataclass
class StoreConfig:
    """Local store settings."""

    path: str = DEFAULT_DB_PATH


@dataclass
class SyncConfig:
    """Replay and connectivity settings."""

    probe_interval: float = 15.0
    halt_on_network_error: bool = True
    verbose: bool = False


@dataclass
class AppConfig:
    """Complete application configuration."""

    api: ApiConfig = field(default_factory=ApiConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)


class ConfigProviderPort(ABC):
    """Abstract interface for configuration providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def load(self) -> AppConfig:
        """Load complete configuration."""
        ...

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty if valid)."""
        ...
