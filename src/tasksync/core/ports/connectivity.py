"""
Connectivity Port - Runtime "is the network reachable" signal.
"""

from abc import ABC, abstractmethod
from typing import Callable


ConnectivityCallback = Callable[[bool], None]


class ConnectivityPort(ABC):
    """
    Abstract interface for network reachability.

    Implementations fire registered callbacks only on transitions
    (offline -> online and online -> offline).
    """

    @abstractmethod
    def is_online(self) -> bool:
        ...

    @abstractmethod
    def on_connectivity_change(self, callback: ConnectivityCallback) -> None:
        """Register a callback fired with the new state on every transition."""
        ...

    @abstractmethod
    def remove_callback(self, callback: ConnectivityCallback) -> bool:
        ...

    def start(self) -> None:
        """Start producing signals (no-op for passive implementations)."""

    def stop(self) -> None:
        """Stop producing signals."""
