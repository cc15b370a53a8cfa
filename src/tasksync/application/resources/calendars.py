"""
Calendar Resource - Linked external calendar accounts and their events.

Calendar data is cached as one meta value; there is no dedicated store.
Event operations talk to the provider through the server and are never
queued.
"""

from typing import Any
from urllib.parse import quote

from ...adapters.http.client import classify_status, decode_body, SUCCESS
from ...core.exceptions import TransportError
from .base import SyncedResource
from .tasks import DateLike, to_iso


CALENDARS_CACHE_KEY = "calendars_data"


def empty_calendar_data() -> dict[str, Any]:
    return {"accounts": []}


class CalendarResource(SyncedResource):
    name = "calendars"
    path = "/calendars"

    def get_calendars(self) -> dict[str, Any]:
        return self.fetcher.fetch_or_cached(
            self.collection_url(), CALENDARS_CACHE_KEY, empty_calendar_data()
        )

    def add_calendar(self, account: dict[str, Any]) -> Any:
        account = self.decode(account)
        return self.send("POST", self.collection_url(), account, optimistic=empty_calendar_data())

    def update_calendar(self, calendar_id: str, data: dict[str, Any]) -> Any:
        data = self.decode(data)
        return self.send("PUT", self.item_url(calendar_id), data, optimistic=empty_calendar_data())

    def delete_calendar(self, calendar_id: str) -> Any:
        return self.send("DELETE", self.item_url(calendar_id), None, optimistic=empty_calendar_data())

    def sync_sub_calendars(self, calendar_id: str) -> Any:
        """
        Ask the server to re-sync an account's sub-calendars.

        Only meaningful online; this is never queued.
        """
        response = self._request_online("POST", self.item_url(calendar_id, "sync"), None)
        if response is None:
            return empty_calendar_data()
        return decode_body(response, default=empty_calendar_data())

    # -------------------------------------------------------------------------
    # Provider events
    # -------------------------------------------------------------------------

    def get_events(self, start: DateLike, end: DateLike) -> list[dict[str, Any]]:
        """Events from every linked account in ``[start, end]``; empty offline."""
        url = self.api.url("/calendars/events") + "?" + self._query({
            "start": to_iso(start),
            "end": to_iso(end),
        })
        response = self._request_online("GET", url, None)
        if response is None:
            return []
        events = decode_body(response, default=[])
        return events if isinstance(events, list) else []

    def update_event(
        self,
        account_id: str,
        calendar_id: str,
        event_id: str,
        changes: dict[str, Any],
    ) -> bool:
        """PATCH a provider event. Returns False when offline or rejected."""
        changes = self.decode(changes)
        url = self.event_url(account_id, calendar_id, event_id)
        return self._request_online("PATCH", url, changes) is not None

    def delete_event(self, account_id: str, calendar_id: str, event_id: str) -> bool:
        url = self.event_url(account_id, calendar_id, event_id)
        return self._request_online("DELETE", url, None) is not None

    def event_url(self, account_id: str, calendar_id: str, event_id: str) -> str:
        return self.item_url(
            account_id,
            "calendars",
            quote(str(calendar_id), safe=""),
            "events",
            quote(str(event_id), safe=""),
        )

    def _request_online(self, method: str, url: str, body: Any) -> Any:
        """Send an unqueued request; None when offline or on any failure."""
        if not self.connectivity.is_online():
            self.logger.warning(f"Offline, skipping {method} {url}")
            return None

        try:
            response = self.api.request(method, url, json=body)
        except TransportError as e:
            self.logger.warning(f"{method} {url} failed: {e}")
            return None

        if classify_status(response.status_code) != SUCCESS:
            self.logger.warning(f"{method} {url} failed with HTTP {response.status_code}")
            return None
        return response
