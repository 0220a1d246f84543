"""MessageBuffer: the lock-guarded list of messages waiting for a drain."""

import logging
import threading
from typing import Optional

from loggly_shipper.models import LogMessage

logger = logging.getLogger(__name__)


class MessageBuffer:
    """Ordered pending messages behind a single lock.

    The lock is only held for in-memory mutation. ``swap`` hands the whole
    list to the caller and leaves an empty one in its place so I/O can run
    unlocked.

    When *max_size* is set, appends and requeues that overflow it drop the
    oldest messages. ``None`` means unbounded.
    """

    def __init__(self, max_size: Optional[int] = None):
        self._lock = threading.Lock()
        self._messages: list[LogMessage] = []
        self._max_size = max_size
        self._dropped = 0

    def append(self, message: LogMessage) -> int:
        """Append one message and return the resulting size."""
        with self._lock:
            self._messages.append(message)
            overflow = self._trim()
            size = len(self._messages)
        self._report_overflow(overflow)
        return size

    def swap(self) -> list[LogMessage]:
        """Detach and return the current contents, leaving the buffer empty."""
        with self._lock:
            captured = self._messages
            self._messages = []
        return captured

    def requeue(self, messages: list[LogMessage]) -> int:
        """Put a failed batch back on the tail. Returns the resulting size."""
        with self._lock:
            self._messages.extend(messages)
            overflow = self._trim()
            size = len(self._messages)
        self._report_overflow(overflow)
        return size

    def _trim(self) -> int:
        # caller holds the lock
        if self._max_size is None:
            return 0
        overflow = len(self._messages) - self._max_size
        if overflow <= 0:
            return 0
        del self._messages[:overflow]
        self._dropped += overflow
        return overflow

    def _report_overflow(self, overflow: int):
        if overflow:
            logger.warning(
                "Buffer over %d messages, dropped %d oldest", self._max_size, overflow
            )

    @property
    def max_size(self) -> Optional[int]:
        return self._max_size

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._messages)

    @property
    def dropped_count(self) -> int:
        with self._lock:
            return self._dropped

    def __len__(self) -> int:
        return self.pending_count
