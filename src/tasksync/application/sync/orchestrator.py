"""
Sync Orchestrator - Connects the connectivity signal to queue replay.

Triggers:
1. Startup while online
2. Connectivity transition to online
3. Manual ``sync_now()``
"""

import logging
from typing import Optional

from ...core.domain.events import EventBus, ConnectivityChanged
from ...core.domain.models import ReplayResult
from ...core.ports.connectivity import ConnectivityPort
from .queue import MutationQueue


class SyncOrchestrator:
    """
    Wiring between a connectivity signal and the queue's replay entrypoint.

    Holds no sync state of its own.
    """

    def __init__(
        self,
        queue: MutationQueue,
        connectivity: ConnectivityPort,
        event_bus: Optional[EventBus] = None,
    ):
        self.queue = queue
        self.connectivity = connectivity
        self.event_bus = event_bus or EventBus()
        self.logger = logging.getLogger("SyncOrchestrator")
        self._started = False

    # -------------------------------------------------------------------------
    # Main Entry Points
    # -------------------------------------------------------------------------

    def start(self) -> Optional[ReplayResult]:
        """
        Subscribe to connectivity changes and replay once if online.

        Returns:
            The startup replay result, or None when offline or already started
        """
        if self._started:
            return None
        self._started = True

        # Start first: the initial probe is the startup trigger, not a transition
        self.connectivity.start()
        self.connectivity.on_connectivity_change(self._on_connectivity_change)

        if not self.connectivity.is_online():
            self.logger.info(f"Started offline; {self.queue.depth()} writes queued")
            return None

        self.logger.info("Started online, processing queue")
        return self.queue.process_queue()

    def stop(self) -> None:
        if not self._started:
            return
        self.connectivity.remove_callback(self._on_connectivity_change)
        self.connectivity.stop()
        self._started = False

    def sync_now(self) -> ReplayResult:
        """Replay the queue immediately."""
        return self.queue.process_queue()

    @property
    def is_running(self) -> bool:
        return self._started

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _on_connectivity_change(self, online: bool) -> None:
        self.event_bus.publish(ConnectivityChanged(online=online))
        if online:
            self.logger.info("App is online, processing queue")
            self.queue.process_queue()
