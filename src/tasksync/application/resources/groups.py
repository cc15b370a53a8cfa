"""
Group Resource - Task groups (columns) per workspace.
"""

from typing import Any, Optional

from ...core.domain.models import EntityRecord
from ...core.ports.local_store import GROUPS
from .base import SyncedResource


class GroupResource(SyncedResource):
    name = "groups"
    path = "/groups"
    store_name = GROUPS

    def get_groups(self, workspace_id: Optional[str] = None) -> list[EntityRecord]:
        return self.list({"workspaceId": workspace_id})

    def create_group(self, group: EntityRecord) -> Any:
        return self.create(group)

    def update_group(self, group_id: str, group: EntityRecord) -> Any:
        return self.update(group_id, group)

    def delete_group(self, group_id: str) -> Any:
        return self.delete(group_id)
