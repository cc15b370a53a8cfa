"""
Label Resource - Task labels per workspace.
"""

from typing import Any, Optional

from ...core.domain.models import EntityRecord
from ...core.ports.local_store import LABELS
from .base import SyncedResource


class LabelResource(SyncedResource):
    name = "labels"
    path = "/labels"
    store_name = LABELS

    def get_labels(self, workspace_id: Optional[str] = None) -> list[EntityRecord]:
        return self.list({"workspaceId": workspace_id})

    def create_label(self, label: EntityRecord) -> Any:
        return self.create(label)

    def update_label(self, label_id: str, label: EntityRecord) -> Any:
        return self.update(label_id, label)

    def delete_label(self, label_id: str) -> Any:
        return self.delete(label_id)
