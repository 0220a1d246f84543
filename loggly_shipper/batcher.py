"""Batcher: buffers messages and drains them to the bulk endpoint."""

import logging
from typing import Optional

from loggly_shipper.buffer import MessageBuffer
from loggly_shipper.delivery import DeliveryClient, DeliveryOutcome
from loggly_shipper.models import LogMessage
from loggly_shipper.serializer import encode_bulk
from loggly_shipper.stats import ShippingStats
from loggly_shipper.tasks import TaskRunner

logger = logging.getLogger(__name__)


class Batcher:
    """Accumulates messages and ships them as NDJSON batches.

    A drain swaps the live buffer for an empty one under the buffer lock and
    posts the captured batch with the lock released. Auth and transport
    failures put the batch back on the buffer tail; any other non-200 status
    drops it. Drains may overlap, each one only sees its own snapshot.
    """

    def __init__(
        self,
        delivery: DeliveryClient,
        url: str,
        runner: TaskRunner,
        buffer_size: int = 1000,
        max_buffered_messages: Optional[int] = None,
        stats: Optional[ShippingStats] = None,
    ):
        if buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        self._delivery = delivery
        self._url = url
        self._runner = runner
        self._buffer_size = buffer_size
        self._buffer = MessageBuffer(max_size=max_buffered_messages)
        self._stats = stats if stats is not None else ShippingStats()

    @property
    def buffer_size(self) -> int:
        return self._buffer_size

    @property
    def pending_count(self) -> int:
        return self._buffer.pending_count

    @property
    def dropped_count(self) -> int:
        return self._buffer.dropped_count

    def enqueue(self, message: LogMessage) -> int:
        """Add a message; schedule a drain once the threshold is reached.

        Never blocks on network I/O. Returns the buffer size after the append.
        """
        size = self._buffer.append(message)
        if size >= self._buffer_size:
            logger.debug("Buffer reached %d messages, triggering drain", size)
            self.trigger_drain("size")
        return size

    def trigger_drain(self, trigger: str = "timer"):
        """Run a drain in the background."""
        self._stats.record_trigger(trigger)
        self._runner.submit(self.drain)

    def drain(self) -> Optional[DeliveryOutcome]:
        """Ship everything currently buffered.

        Returns the delivery outcome, or None when there was nothing to send.
        """
        messages = self._buffer.swap()
        if not messages:
            logger.debug("No logs to send")
            return None

        body = encode_bulk(messages)
        if not body:
            logger.debug("No serializable logs in batch of %d, nothing sent", len(messages))
            self._stats.record_dropped(len(messages))
            return None

        outcome = self._delivery.deliver(body, self._url)
        self._stats.record_outcome(outcome.kind.value, len(messages), batch=True)

        if outcome.ok:
            logger.debug("Shipped batch of %d logs", len(messages))
        elif outcome.should_requeue:
            size = self._buffer.requeue(messages)
            self._stats.record_requeued(len(messages))
            logger.debug(
                "Batch of %d logs not delivered (%s), requeued; %d pending",
                len(messages),
                outcome.kind.value,
                size,
            )
        else:
            self._stats.record_dropped(len(messages))
            logger.warning(
                "Dropping batch of %d logs after HTTP %s",
                len(messages),
                outcome.status_code,
            )
        return outcome
