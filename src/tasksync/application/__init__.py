"""
Application Layer - Sync orchestration and entity modules.

This layer contains:
- sync/: Mutation queue and replay orchestrator
- resources/: Entity sync modules (tasks, groups, labels, ...)
- service: The engine facade wiring everything together
"""

from .sync import MutationQueue, SyncOrchestrator
from .resources import (
    SyncedResource,
    TaskResource,
    GroupResource,
    LabelResource,
    WorkspaceResource,
    SettingsResource,
    CalendarResource,
    NotificationResource,
)
from .service import TaskSyncService

__all__ = [
    "MutationQueue",
    "SyncOrchestrator",
    "SyncedResource",
    "TaskResource",
    "GroupResource",
    "LabelResource",
    "WorkspaceResource",
    "SettingsResource",
    "CalendarResource",
    "NotificationResource",
    "TaskSyncService",
]
