"""TaskRunner: fire-and-forget work on a thread pool the owner can join."""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TaskRunner:
    """Runs background callables and keeps track of the ones still pending.

    Exceptions raised by a task are logged, never propagated to the
    submitter. After ``shutdown`` new submissions are refused.
    """

    def __init__(self, max_workers: int = 8, name: str = "loggly-shipper"):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=name
        )
        self._lock = threading.Lock()
        self._pending: set[Future] = set()
        self._closed = False

    def submit(self, fn: Callable, *args) -> Optional[Future]:
        """Schedule fn(*args). Returns None if the runner is shut down."""
        with self._lock:
            if self._closed:
                logger.debug("Task runner closed, dropping %s", getattr(fn, "__name__", fn))
                return None
            future = self._executor.submit(fn, *args)
            self._pending.add(future)
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, future: Future):
        with self._lock:
            self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Background task failed: %s", exc, exc_info=exc)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until every task submitted so far is done.

        Tasks submitted while waiting (e.g. a drain triggered by a send) are
        waited for too. *timeout* bounds the whole call. Returns False if it
        expired first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                pending = [f for f in self._pending if not f.done()]
            if not pending:
                return True
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
            _, not_done = wait_futures(pending, timeout=remaining)
            if not_done:
                return False

    def shutdown(self, wait: bool = True, cancel_pending: bool = False):
        """Refuse new work and stop the pool."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=cancel_pending)
