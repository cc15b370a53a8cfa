"""
Resources - Entity sync modules built on the shared write template.
"""

from .base import SyncedResource
from .calendars import CalendarResource
from .groups import GroupResource
from .labels import LabelResource
from .notifications import NotificationResource
from .settings import SettingsResource
from .tasks import TaskResource
from .workspaces import WorkspaceResource

__all__ = [
    "SyncedResource",
    "TaskResource",
    "GroupResource",
    "LabelResource",
    "WorkspaceResource",
    "SettingsResource",
    "CalendarResource",
    "NotificationResource",
]
