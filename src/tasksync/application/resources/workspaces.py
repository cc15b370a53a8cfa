"""
Workspace Resource - Workspaces and their membership.
"""

from typing import Any

from ...core.domain.models import EntityRecord
from ...core.ports.local_store import WORKSPACES
from .base import SyncedResource


class WorkspaceResource(SyncedResource):
    """
    Workspaces, stored in the ``workspaces`` store.

    Membership operations go through the write template but are not
    persisted locally; the next ``get_workspaces()`` refresh reflects them.
    """

    name = "workspaces"
    path = "/workspaces"
    store_name = WORKSPACES

    def get_workspaces(self) -> list[EntityRecord]:
        return self.list()

    def create_workspace(self, name: str, type: str, owner_id: str) -> Any:
        return self.create({"name": name, "type": type, "ownerId": owner_id})

    def update_workspace(self, workspace_id: str, data: EntityRecord) -> Any:
        return self.update(workspace_id, data)

    def delete_workspace(self, workspace_id: str) -> Any:
        return self.delete(workspace_id)

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------

    def remove_member(self, workspace_id: str, user_id: str) -> Any:
        url = self.item_url(workspace_id, "members", str(user_id))
        return self.send("DELETE", url, None, optimistic={})

    def assign_owner(self, workspace_id: str, user_id: str) -> Any:
        body = {"ownerId": user_id}
        return self.send("PUT", self.item_url(workspace_id, "owner"), body, optimistic=body)

    def leave_workspace(self, workspace_id: str) -> Any:
        return self.send("POST", self.item_url(workspace_id, "leave"), None, optimistic={})
