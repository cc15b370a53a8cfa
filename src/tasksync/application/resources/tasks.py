"""
Task Resource - Task writes and the grouped task read model.
"""

from datetime import datetime
from typing import Any, Optional, Union

from ...core.domain.models import EntityRecord, InitialData
from ...core.ports.local_store import TASKS
from .base import SyncedResource
from .groups import GroupResource
from .labels import LabelResource


DateLike = Union[datetime, str]


def to_iso(value: DateLike) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class TaskResource(SyncedResource):
    """Tasks, stored in the ``tasks`` store."""

    name = "tasks"
    path = "/tasks"
    store_name = TASKS

    def __init__(self, *args: Any, groups: GroupResource, labels: LabelResource, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.groups = groups
        self.labels = labels

    def create_task(self, task: EntityRecord) -> Any:
        return self.create(task)

    def update_task(self, task_id: str, task: EntityRecord) -> Any:
        return self.update(task_id, task)

    def delete_task(self, task_id: str) -> Any:
        return self.delete(task_id)

    def get_initial_data(
        self,
        start: DateLike,
        end: DateLike,
        workspace_id: Optional[str] = None,
    ) -> InitialData:
        """
        Load tasks for a date range and distribute them into buckets.

        Args:
            start: Range start (datetime or ISO string)
            end: Range end (datetime or ISO string)
            workspace_id: Optional workspace filter

        Returns:
            InitialData with groups (each carrying its tasks), unassigned
            tasks, templates, and the available labels
        """
        params = {
            "startDate": to_iso(start),
            "endDate": to_iso(end),
            "workspaceId": workspace_id,
        }
        all_tasks = self.list(params)
        labels = self.labels.get_labels(workspace_id)
        groups = self.groups.get_groups(workspace_id)

        data = self.partition_tasks(all_tasks, groups)
        data.available_labels = list(labels) if isinstance(labels, list) else []
        self.logger.debug(
            f"Initial data: {len(data.groups)} groups, {len(data.dump_tasks)} unassigned, "
            f"{len(data.templates)} templates"
        )
        return data

    @staticmethod
    def partition_tasks(tasks: Any, groups: Any) -> InitialData:
        """
        Split a flat task list into templates, group buckets and the dump.

        A task whose ``groupId`` names no known group lands in the dump.
        Groups are copied; the inputs are not modified.
        """
        buckets = [
            {**group, "tasks": []}
            for group in (groups if isinstance(groups, list) else [])
            if isinstance(group, dict)
        ]
        by_id = {str(g.get("id")): g for g in buckets if g.get("id") is not None}

        data = InitialData(groups=buckets)
        if not isinstance(tasks, list):
            return data

        for task in tasks:
            if not isinstance(task, dict):
                continue
            if task.get("isTemplate"):
                data.templates.append(task)
                continue
            group_id = task.get("groupId")
            group = by_id.get(str(group_id)) if group_id else None
            if group is not None:
                group["tasks"].append(task)
            else:
                data.dump_tasks.append(task)

        return data
