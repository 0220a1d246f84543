"""Periodic drain trigger for bulk mode."""

import logging
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

JOB_ID = "loggly-flush"


class FlushScheduler:
    """Calls *on_tick* every *interval* seconds on a background scheduler thread."""

    def __init__(self, interval: float, on_tick: Callable[[], None]):
        if interval <= 0:
            raise ValueError("flush interval must be positive")
        self._interval = interval
        self._on_tick = on_tick
        self._scheduler = BackgroundScheduler(daemon=True)
        self._scheduler.add_job(
            self._on_tick,
            "interval",
            seconds=interval,
            id=JOB_ID,
            coalesce=True,
            max_instances=1,
        )

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self):
        if not self._scheduler.running:
            self._scheduler.start()
            logger.debug("Flush scheduler started, interval=%.2fs", self._interval)

    def shutdown(self, wait: bool = True):
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.debug("Flush scheduler stopped")
