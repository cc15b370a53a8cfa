"""
tasksync - Offline-capable data synchronization engine.

Keeps a task-management client usable across unreliable connectivity:
cache-validated reads, a durable local store, a replayable write queue
and optimistic writes for every resource family.
"""

__version__ = "1.0.0"

from .application.service import TaskSyncService

__all__ = ["TaskSyncService", "__version__"]
