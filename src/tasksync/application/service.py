"""
TaskSync Service - The sync engine, constructed once and passed around.

Owns one instance of every collaborator (store, API client, event bus,
queue, orchestrator, resource modules) and wires them together.
"""

import logging
from typing import Optional

import requests

from ..adapters.connectivity import ConnectivityMonitor
from ..adapters.http import ApiClient, ConditionalFetchClient
from ..adapters.store import SQLiteLocalStore
from ..core.domain.events import EventBus
from ..core.domain.models import ReplayResult
from ..core.ports.config_provider import AppConfig
from ..core.ports.connectivity import ConnectivityPort
from ..core.ports.local_store import LocalStorePort
from ..core.ports.token_provider import FileTokenProvider, StaticTokenProvider, TokenProvider
from .resources import (
    CalendarResource,
    GroupResource,
    LabelResource,
    NotificationResource,
    SettingsResource,
    TaskResource,
    WorkspaceResource,
)
from .sync import MutationQueue, SyncOrchestrator


def token_provider_for(config: AppConfig) -> TokenProvider:
    """A file-backed provider when a token file is configured, else the static token."""
    if config.api.token_file:
        return FileTokenProvider(config.api.token_file)
    return StaticTokenProvider(config.api.token)


class TaskSyncService:
    """
    Offline-capable sync engine facade.

    Example:
        >>> with TaskSyncService.from_config(config) as service:
        ...     service.tasks.update_task("T1", {"id": "T1", "title": "Buy milk"})
    """

    def __init__(
        self,
        store: LocalStorePort,
        api: ApiClient,
        connectivity: ConnectivityPort,
        event_bus: Optional[EventBus] = None,
        halt_on_network_error: bool = True,
    ):
        self.store = store
        self.api = api
        self.connectivity = connectivity
        self.event_bus = event_bus or EventBus()
        self.logger = logging.getLogger("TaskSyncService")

        self.fetcher = ConditionalFetchClient(api, store, connectivity, self.event_bus)
        self.queue = MutationQueue(
            store,
            api,
            connectivity,
            self.event_bus,
            halt_on_network_error=halt_on_network_error,
        )
        self.orchestrator = SyncOrchestrator(self.queue, connectivity, self.event_bus)

        deps = (api, store, connectivity, self.queue, self.fetcher, self.event_bus)
        self.groups = GroupResource(*deps)
        self.labels = LabelResource(*deps)
        self.tasks = TaskResource(*deps, groups=self.groups, labels=self.labels)
        self.workspaces = WorkspaceResource(*deps)
        self.settings = SettingsResource(*deps)
        self.calendars = CalendarResource(*deps)
        self.notifications = NotificationResource(*deps)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        connectivity: Optional[ConnectivityPort] = None,
        session: Optional[requests.Session] = None,
    ) -> "TaskSyncService":
        """
        Build the engine from configuration.

        Args:
            config: Application configuration
            connectivity: Connectivity signal (defaults to a monitor probing
                the API host)
            session: Optional requests session (for tests or custom adapters)
        """
        api = ApiClient(
            base_url=config.api.url,
            token_provider=token_provider_for(config),
            timeout=config.api.timeout,
            session=session,
        )
        if connectivity is None:
            connectivity = ConnectivityMonitor(
                config.api.url, check_interval=config.sync.probe_interval
            )
        return cls(
            store=SQLiteLocalStore(config.store.path),
            api=api,
            connectivity=connectivity,
            halt_on_network_error=config.sync.halt_on_network_error,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> Optional[ReplayResult]:
        """Open the store and start watching connectivity."""
        self.store.open()
        return self.orchestrator.start()

    def close(self) -> None:
        self.orchestrator.stop()
        self.api.close()
        self.store.close()
        self.logger.debug("Sync engine closed")

    def sync_now(self) -> ReplayResult:
        return self.orchestrator.sync_now()

    def __enter__(self) -> "TaskSyncService":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
