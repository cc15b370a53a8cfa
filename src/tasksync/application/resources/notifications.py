"""
Notification Resource - User notifications and workspace invitations.
"""

from typing import Any, Optional
from urllib.parse import quote

from ...adapters.http.client import classify_status, SUCCESS
from ...core.exceptions import OfflineError, TransportError
from .base import SyncedResource


NOTIFICATIONS_CACHE_KEY = "notifications_list"


class NotificationResource(SyncedResource):
    name = "notifications"
    path = "/notifications"

    def get_notifications(self) -> list[dict[str, Any]]:
        return self.fetcher.fetch_or_cached(self.collection_url(), NOTIFICATIONS_CACHE_KEY, [])

    def mark_notification_read(self, notification_id: str) -> Any:
        return self.send("PUT", self.item_url(notification_id, "read"), None, optimistic={})

    # -------------------------------------------------------------------------
    # Invitations
    # -------------------------------------------------------------------------

    def invite_user(self, email: str, workspace_id: str) -> None:
        """
        Invite a user to a workspace.

        Invitations are not queued; they need a live server.

        Raises:
            OfflineError: When offline or the server did not accept the invite
        """
        self._post_invitation(
            self.api.url("/invitations"),
            {"email": email, "workspaceId": workspace_id},
            "Invite",
        )
        self.logger.info(f"Invited {email} to workspace {workspace_id}")

    def respond_to_invite(self, invitation_id: str, accept: bool) -> None:
        """
        Accept or decline a pending invitation.

        Raises:
            OfflineError: When offline or the server did not take the answer
        """
        action = "accept" if accept else "decline"
        url = self.api.url(f"/invitations/{quote(str(invitation_id), safe='')}/{action}")
        self._post_invitation(url, None, "Respond to invite")
        self.logger.info(f"Invitation {invitation_id}: {action}ed")

    def _post_invitation(self, url: str, body: Optional[dict[str, Any]], action: str) -> None:
        if not self.connectivity.is_online():
            raise OfflineError(f"Must be online to {action.lower()}")

        try:
            response = self.api.request("POST", url, json=body)
        except TransportError as e:
            raise OfflineError(f"{action} failed: {e}", cause=e)

        if classify_status(response.status_code) != SUCCESS:
            raise OfflineError(f"{action} failed: HTTP {response.status_code}")
