"""
Mutation Queue - Durable, ordered log of unconfirmed writes.

Writes that could not be confirmed by the server are appended here and
replayed later in the order the user issued them.

State machine per item::

    Pending -> Sent -> Confirmed  (2xx, deleted)
                    -> Rejected   (4xx, deleted)
                    -> Pending    (5xx, kept verbatim)
                    -> Pending    (no response, pass stops)
"""

import logging
import threading
import time
from typing import Any, Callable, Optional

from ...adapters.http.client import ApiClient, classify_status, SUCCESS, CLIENT_ERROR
from ...core.domain.events import (
    EventBus,
    MutationQueued,
    MutationConfirmed,
    MutationRejected,
    MutationRetained,
    ReplayStarted,
    ReplayCompleted,
)
from ...core.domain.models import QueueItem, MutationOutcome, ReplayResult
from ...core.exceptions import TransportError
from ...core.ports.connectivity import ConnectivityPort
from ...core.ports.local_store import LocalStorePort, WRITE_QUEUE


class MutationQueue:
    """
    Append-only write queue with sequential replay.

    At most one replay pass runs at a time. A replay requested while a
    pass is running is folded into that pass: the running caller performs
    one more pass before returning.
    """

    def __init__(
        self,
        store: LocalStorePort,
        api: ApiClient,
        connectivity: ConnectivityPort,
        event_bus: Optional[EventBus] = None,
        halt_on_network_error: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the queue.

        Args:
            store: Local store holding the ``write_queue`` store
            api: Client used to re-issue requests
            connectivity: Reachability signal
            event_bus: Optional event bus
            halt_on_network_error: Stop a pass at the first request that
                gets no response (strict ordering). When False the item is
                kept and replay continues with the next one.
            clock: Time source for queue timestamps
        """
        self.store = store
        self.api = api
        self.connectivity = connectivity
        self.event_bus = event_bus or EventBus()
        self.halt_on_network_error = halt_on_network_error
        self.logger = logging.getLogger("MutationQueue")

        self._clock = clock
        self._last_timestamp = 0.0
        self._state_lock = threading.Lock()
        self._replaying = False
        self._rerun_requested = False

    # -------------------------------------------------------------------------
    # Enqueue
    # -------------------------------------------------------------------------

    def add_to_queue(self, url: str, method: str, body: Any = None) -> QueueItem:
        """
        Append a write to the queue and, if online, try to replay at once.

        Args:
            url: Resource URL or path
            method: HTTP method
            body: JSON body, or None

        Returns:
            The stored queue item (with its id)
        """
        item = QueueItem(
            url=self.api.url(url),
            method=method.upper(),
            body=body,
            timestamp=self._next_timestamp(),
        )
        item.id = self.store.put(WRITE_QUEUE, item.to_row())

        self.logger.info(f"Queued {item}")
        self.event_bus.publish(MutationQueued(
            item_id=item.id, url=item.url, method=item.method,
        ))

        if self.connectivity.is_online():
            self.process_queue()

        return item

    def _next_timestamp(self) -> float:
        # Strictly increasing, so same-tick inserts keep their order
        with self._state_lock:
            now = max(self._clock(), self._last_timestamp + 1e-6)
            self._last_timestamp = now
            return now

    # -------------------------------------------------------------------------
    # Replay
    # -------------------------------------------------------------------------

    def process_queue(self) -> ReplayResult:
        """
        Replay queued writes in timestamp order, one request at a time.

        Returns:
            ReplayResult describing what happened
        """
        result = ReplayResult()

        if not self.connectivity.is_online():
            result.skipped_offline = True
            result.remaining = self.depth()
            self.logger.debug("Offline, replay skipped")
            return result

        with self._state_lock:
            if self._replaying:
                self._rerun_requested = True
                result.deferred = True
                self.logger.debug("Replay already running, re-run requested")
                return result
            self._replaying = True

        try:
            while True:
                self._replay_pass(result)
                with self._state_lock:
                    rerun = self._rerun_requested and not result.halted
                    self._rerun_requested = False
                    if not rerun:
                        self._replaying = False
                        break
        finally:
            with self._state_lock:
                self._replaying = False

        result.remaining = self.depth()
        self.logger.info(
            f"Replay finished: {result.confirmed} confirmed, {result.rejected} rejected, "
            f"{result.retained} retained, {result.remaining} remaining"
            + (" (halted)" if result.halted else "")
        )
        self.event_bus.publish(ReplayCompleted(
            confirmed=result.confirmed,
            rejected=result.rejected,
            retained=result.retained,
            halted=result.halted,
            remaining=result.remaining,
        ))
        return result

    def _replay_pass(self, result: ReplayResult) -> None:
        items = self.pending()
        if not items:
            return

        self.event_bus.publish(ReplayStarted(pending=len(items)))
        self.logger.debug(f"Replaying {len(items)} queued writes")

        for item in items:
            outcome = self._replay_item(item, result)
            result.attempted += 1
            result.record(outcome)
            if outcome is MutationOutcome.HALTED:
                self.logger.warning(
                    f"Replay stopped at {item}; later writes stay queued to keep order"
                )
                return

    def _replay_item(self, item: QueueItem, result: ReplayResult) -> MutationOutcome:
        try:
            response = self.api.request(item.method, item.url, json=item.body)
        except TransportError as e:
            result.add_error(f"{item}: {e}")
            if self.halt_on_network_error:
                return MutationOutcome.HALTED
            self.logger.warning(f"No response for {item}, keeping it queued: {e}")
            return MutationOutcome.RETAINED

        status = response.status_code
        outcome = classify_status(status)

        if outcome == SUCCESS:
            self.store.delete(WRITE_QUEUE, item.id)
            self.logger.debug(f"Confirmed {item} ({status})")
            self.event_bus.publish(MutationConfirmed(
                item_id=item.id, url=item.url, method=item.method, status=status,
            ))
            return MutationOutcome.CONFIRMED

        if outcome == CLIENT_ERROR:
            self.store.delete(WRITE_QUEUE, item.id)
            self.logger.warning(f"Server rejected {item} with {status}; dropped")
            result.add_error(f"{item}: rejected with HTTP {status}")
            self.event_bus.publish(MutationRejected(
                item_id=item.id, url=item.url, method=item.method, status=status,
            ))
            return MutationOutcome.REJECTED

        self.logger.warning(f"Server error {status} for {item}; will retry")
        result.add_error(f"{item}: HTTP {status}")
        self.event_bus.publish(MutationRetained(
            item_id=item.id, url=item.url, method=item.method, status=status,
        ))
        return MutationOutcome.RETAINED

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def pending(self) -> list[QueueItem]:
        """Queued writes in replay order."""
        items = [QueueItem.from_row(row) for row in self.store.get_all(WRITE_QUEUE)]
        items.sort(key=lambda i: (i.timestamp, i.id or 0))
        return items

    def depth(self) -> int:
        return len(self.store.get_all(WRITE_QUEUE))

    def discard(self, item_id: int) -> bool:
        """Drop one queued write. Returns False if it was not queued."""
        if self.store.get(WRITE_QUEUE, item_id) is None:
            return False
        self.store.delete(WRITE_QUEUE, item_id)
        self.logger.info(f"Discarded queued write #{item_id}")
        return True

    def clear(self) -> None:
        self.store.clear(WRITE_QUEUE)
