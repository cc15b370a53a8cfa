"""
Connectivity Monitor - Network reachability signal for the sync engine.

Two implementations of ConnectivityPort:

- ConnectivityMonitor probes the API host from a daemon thread with a TCP
  connect and reports online/offline transitions.
- ManualConnectivity is driven by the embedding application (or tests)
  through ``set_online``.
"""

import logging
import socket
import threading
import time
from typing import Optional
from urllib.parse import urlparse

from ...core.ports.connectivity import ConnectivityPort, ConnectivityCallback


class _TransitionSignal(ConnectivityPort):
    """Callback bookkeeping shared by the connectivity adapters."""

    def __init__(self, online: bool = False):
        self._online = online
        self._callbacks: list[ConnectivityCallback] = []
        self._lock = threading.Lock()
        self.logger = logging.getLogger(self.__class__.__name__)

    def is_online(self) -> bool:
        with self._lock:
            return self._online

    def on_connectivity_change(self, callback: ConnectivityCallback) -> None:
        self._callbacks.append(callback)

    def remove_callback(self, callback: ConnectivityCallback) -> bool:
        if callback in self._callbacks:
            self._callbacks.remove(callback)
            return True
        return False

    def _update(self, online: bool) -> bool:
        """Record the new state; fire callbacks on a transition."""
        with self._lock:
            changed = online != self._online
            self._online = online

        if not changed:
            return False

        self.logger.info(f"Connectivity changed: {'online' if online else 'offline'}")
        for callback in list(self._callbacks):
            try:
                callback(online)
            except Exception as e:
                self.logger.error(f"Connectivity callback failed: {e}")
        return True


class ManualConnectivity(_TransitionSignal):
    """Connectivity state set explicitly by the application."""

    def __init__(self, online: bool = True):
        super().__init__(online=online)

    def set_online(self, online: bool) -> None:
        self._update(online)


class ConnectivityMonitor(_TransitionSignal):
    """
    Background monitor probing the API host.

    The first probe runs synchronously in ``start()`` so the initial state
    is known before the application issues its first read.
    """

    def __init__(
        self,
        probe_url: str,
        check_interval: float = 15.0,
        probe_timeout: float = 3.0,
    ):
        """
        Initialize the monitor.

        Args:
            probe_url: URL whose host:port is probed (usually the API URL)
            check_interval: Seconds between probes
            probe_timeout: TCP connect timeout in seconds
        """
        super().__init__(online=False)
        self.check_interval = check_interval
        self.probe_timeout = probe_timeout
        self.probe_host, self.probe_port = self._parse_target(probe_url)

        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Probe once, then keep probing from a daemon thread."""
        if self._running:
            return
        self._running = True
        self._stop_event.clear()
        self.check_now()
        self._thread = threading.Thread(
            target=self._monitor_loop, daemon=True, name="connectivity-monitor"
        )
        self._thread.start()
        self.logger.info(
            f"ConnectivityMonitor started for {self.probe_host}:{self.probe_port} "
            f"(interval={self.check_interval:.0f}s)"
        )

    def stop(self) -> None:
        self._running = False
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=self.probe_timeout + 1)
            self._thread = None

    def check_now(self) -> bool:
        """Run one probe synchronously and return the resulting state."""
        online = self._probe()
        self._update(online)
        return online

    # -------------------------------------------------------------------------
    # Background loop
    # -------------------------------------------------------------------------

    def _monitor_loop(self) -> None:
        while self._running:
            if self._stop_event.wait(self.check_interval):
                break
            try:
                self.check_now()
            except Exception as e:
                self.logger.debug(f"Connectivity probe failed: {e}")

    def _probe(self) -> bool:
        if not self.probe_host:
            return True

        start = time.monotonic()
        try:
            with socket.create_connection(
                (self.probe_host, self.probe_port), timeout=self.probe_timeout
            ):
                pass
        except OSError:
            return False

        elapsed_ms = (time.monotonic() - start) * 1000
        self.logger.debug(f"Probe {self.probe_host}:{self.probe_port} ok ({elapsed_ms:.0f}ms)")
        return True

    @staticmethod
    def _parse_target(url: str) -> tuple[str, int]:
        parsed = urlparse(url)
        host = parsed.hostname or ""
        port = parsed.port or (443 if parsed.scheme == "https" else 80)
        return host, port
