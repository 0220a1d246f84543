"""Shipping stats: thread-safe counters for deliveries and drains."""

import threading
import time


class ShippingStats:
    """Counts what happened to shipped messages.

    All updates happen under one lock; ``snapshot`` returns a plain dict.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages_shipped = 0
        self._messages_requeued = 0
        self._messages_dropped = 0
        self._batches_sent = 0
        self._deliveries_failed = 0
        self._drain_triggers: dict[str, int] = {"size": 0, "timer": 0, "manual": 0}
        self._outcomes: dict[str, int] = {}
        self._start_time = time.monotonic()

    def record_trigger(self, trigger: str) -> None:
        with self._lock:
            self._drain_triggers[trigger] = self._drain_triggers.get(trigger, 0) + 1

    def record_outcome(self, kind: str, message_count: int, batch: bool) -> None:
        """Record one delivery attempt covering *message_count* messages.

        Args:
            kind: DeliveryOutcome kind value, e.g. "success".
            message_count: Messages carried by the attempt.
            batch: True for bulk drains, False for immediate sends.
        """
        with self._lock:
            self._outcomes[kind] = self._outcomes.get(kind, 0) + 1
            if batch:
                self._batches_sent += 1
            if kind == "success":
                self._messages_shipped += message_count
            else:
                self._deliveries_failed += 1

    def record_requeued(self, count: int) -> None:
        with self._lock:
            self._messages_requeued += count

    def record_dropped(self, count: int) -> None:
        with self._lock:
            self._messages_dropped += count

    def snapshot(self) -> dict:
        """Return a point-in-time copy of every counter."""
        with self._lock:
            return {
                "messages_shipped": self._messages_shipped,
                "messages_requeued": self._messages_requeued,
                "messages_dropped": self._messages_dropped,
                "batches_sent": self._batches_sent,
                "deliveries_failed": self._deliveries_failed,
                "drain_triggers": dict(self._drain_triggers),
                "outcomes": dict(self._outcomes),
                "uptime_seconds": time.monotonic() - self._start_time,
            }
