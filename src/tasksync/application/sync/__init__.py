"""
Sync Module - Durable write queue and replay orchestration.
"""

from .queue import MutationQueue
from .orchestrator import SyncOrchestrator

__all__ = ["MutationQueue", "SyncOrchestrator"]
