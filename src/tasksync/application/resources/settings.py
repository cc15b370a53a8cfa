"""
Settings Resource - General user settings, cached as one meta value.

Partial updates are serialized: each one is merged onto the value left by
the previous update, so two quick partial updates cannot read the same
stale base and clobber each other's fields.
"""

import threading
import time
from typing import Any

from ...core.domain.models import CacheMeta
from ...core.exceptions import InvalidRecordError
from ...core.ports.local_store import META
from .base import SyncedResource


SETTINGS_PATH = "/settings/general"
SETTINGS_CACHE_KEY = "settings_general"


class SettingsResource(SyncedResource):
    name = "settings"
    path = SETTINGS_PATH

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._update_lock = threading.Lock()

    def get_general_settings(self) -> dict[str, Any]:
        """Fresh, cached, or empty settings."""
        return self.fetcher.fetch_or_cached(
            self.api.url(SETTINGS_PATH), SETTINGS_CACHE_KEY, {}
        )

    def update_general_settings(self, partial: dict[str, Any]) -> dict[str, Any]:
        """
        Merge a partial update onto the last known settings and send it.

        Args:
            partial: Settings fields to change

        Returns:
            The merged settings object (the server's copy if it returned one)
        """
        if not isinstance(partial, dict):
            raise InvalidRecordError(
                f"settings: expected a JSON object, got {type(partial).__name__}"
            )

        with self._update_lock:
            meta = self.fetcher.get_meta(SETTINGS_CACHE_KEY)
            base = meta.value if meta and isinstance(meta.value, dict) else {}
            merged = {**base, **partial}

            # The cached validator described the old value
            self._write(merged)
            self.logger.debug(f"Settings updated locally: {sorted(partial)}")

            result = self.send("PUT", self.api.url(SETTINGS_PATH), dict(partial), optimistic=merged)
            if isinstance(result, dict) and result is not merged and result:
                self._write(result)
                return result
            return merged

    def _write(self, value: dict[str, Any]) -> None:
        self.store.put(META, CacheMeta(
            key=SETTINGS_CACHE_KEY,
            value=value,
            validator=None,
            last_updated=time.time(),
        ).to_row())
