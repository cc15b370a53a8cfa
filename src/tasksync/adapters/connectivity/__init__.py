"""
Connectivity Adapters - Online/offline signals.
"""

from .monitor import ConnectivityMonitor, ManualConnectivity

__all__ = ["ConnectivityMonitor", "ManualConnectivity"]
