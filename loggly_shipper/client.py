"""LogglyClient: level-gated logging API shipping events over HTTP.

Every accepted call builds a LogMessage and hands it off without waiting on
the network: in bulk mode it goes into the Batcher's buffer, otherwise it is
posted on its own from the task runner. Callers never see a delivery error.
"""

import logging
import sys
import threading
from typing import Any, Callable, Optional

import httpx

from loggly_shipper.batcher import Batcher
from loggly_shipper.config import LoggerConfig
from loggly_shipper.delivery import DeliveryClient, DeliveryOutcome
from loggly_shipper.formatter import format_data_message, printf_message, render_line
from loggly_shipper.log_setup import (
    debug_output_enabled,
    disable_debug_output,
    enable_debug_output,
)
from loggly_shipper.models import Level, LogMessage, create_log_message
from loggly_shipper.scheduler import FlushScheduler
from loggly_shipper.serializer import SerializationError, encode_message
from loggly_shipper.stats import ShippingStats
from loggly_shipper.tasks import TaskRunner

logger = logging.getLogger(__name__)

Data = Optional[dict[str, Any]]


class LogglyClient:
    def __init__(
        self,
        config: LoggerConfig,
        transport: Optional[httpx.BaseTransport] = None,
        delivery: Optional[DeliveryClient] = None,
        exit_func: Callable[[int], Any] = sys.exit,
    ):
        self._config = config
        self._exit = exit_func
        self._closed = False
        self._state_lock = threading.Lock()
        self._stats = ShippingStats()
        self._delivery = (
            delivery
            if delivery is not None
            else DeliveryClient(timeout=config.request_timeout, transport=transport)
        )
        self._runner = TaskRunner(max_workers=config.max_workers)
        self._batcher: Optional[Batcher] = None
        self._scheduler: Optional[FlushScheduler] = None

        # only the client that attached the debug handler removes it
        self._owns_debug_output = config.debug and not debug_output_enabled()
        if config.debug:
            enable_debug_output()

        if config.bulk:
            self._batcher = Batcher(
                delivery=self._delivery,
                url=config.url,
                runner=self._runner,
                buffer_size=config.buffer_size,
                max_buffered_messages=config.max_buffered_messages,
                stats=self._stats,
            )
            self._scheduler = FlushScheduler(
                config.flush_interval, self._batcher.trigger_drain
            )
            self._scheduler.start()

        logger.debug(
            "Logger ready: mode=%s, level=%s, url=%s",
            "bulk" if config.bulk else "single",
            config.level,
            config.url,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> LoggerConfig:
        return self._config

    @property
    def stats(self) -> ShippingStats:
        return self._stats

    @property
    def pending_count(self) -> int:
        """Messages waiting in the bulk buffer (always 0 in single mode)."""
        return self._batcher.pending_count if self._batcher is not None else 0

    @property
    def closed(self) -> bool:
        return self._closed

    def is_enabled_for(self, level: Level) -> bool:
        return not self._closed and self._config.level <= level

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def log(self, level: Level, output: str, data: Data = None) -> Optional[LogMessage]:
        """Ship *output* at *level*. Returns the message, or None if gated.

        Unlike the fatal* helpers this never terminates the process.
        """
        level = Level.parse(level)
        if not self.is_enabled_for(level):
            return None
        return self._ship(level, output, data)

    def _ship(self, level: Level, output: str, data: Data) -> LogMessage:
        message = create_log_message(level, output, data)

        if self._config.debug:
            print(render_line(message.timestamp, message.level, output, data))

        if self._batcher is not None:
            self._batcher.enqueue(message)
        else:
            self._runner.submit(self._send_single, message)
        return message

    def _send_single(self, message: LogMessage) -> Optional[DeliveryOutcome]:
        try:
            payload = encode_message(message)
        except SerializationError as exc:
            logger.warning("Error marshalling log message %r: %s", message.message, exc)
            self._stats.record_dropped(1)
            return None

        outcome = self._delivery.deliver(payload, self._config.url)
        self._stats.record_outcome(outcome.kind.value, 1, batch=False)
        if outcome.ok:
            logger.debug("Log was shipped successfully")
        else:
            logger.debug("Log was not shipped: %s", outcome)
        return outcome

    def _fatal(self, output: str, data: Data):
        # a shut-down client discards the call and does not exit
        if not self.is_enabled_for(Level.FATAL):
            return
        self._ship(Level.FATAL, output, data)
        # delivery is not awaited
        self._exit(1)

    # ------------------------------------------------------------------
    # DEBUG
    # ------------------------------------------------------------------

    def debug(self, output: str):
        self.debugd(output, None)

    def debugf(self, fmt: str, *args):
        if self.is_enabled_for(Level.DEBUG):
            self._ship(Level.DEBUG, printf_message(fmt, args), None)

    def debugd(self, output: str, data: Data):
        if self.is_enabled_for(Level.DEBUG):
            self._ship(Level.DEBUG, output, data)

    def debugdf(self, template: str, *values) -> Optional[str]:
        """Ship a ``@Field`` template (see format_data_message).

        Returns the rendered message, or None when DEBUG is filtered out.
        """
        if not self.is_enabled_for(Level.DEBUG):
            return None
        message, data = format_data_message(template, *values)
        self._ship(Level.DEBUG, message, data)
        return message

    # ------------------------------------------------------------------
    # INFO
    # ------------------------------------------------------------------

    def info(self, output: str):
        self.infod(output, None)

    def infof(self, fmt: str, *args):
        if self.is_enabled_for(Level.INFO):
            self._ship(Level.INFO, printf_message(fmt, args), None)

    def infod(self, output: str, data: Data):
        if self.is_enabled_for(Level.INFO):
            self._ship(Level.INFO, output, data)

    def infodf(self, template: str, *values) -> Optional[str]:
        if not self.is_enabled_for(Level.INFO):
            return None
        message, data = format_data_message(template, *values)
        self._ship(Level.INFO, message, data)
        return message

    # ------------------------------------------------------------------
    # WARN
    # ------------------------------------------------------------------

    def warn(self, output: str):
        self.warnd(output, None)

    def warnf(self, fmt: str, *args):
        if self.is_enabled_for(Level.WARN):
            self._ship(Level.WARN, printf_message(fmt, args), None)

    def warnd(self, output: str, data: Data):
        if self.is_enabled_for(Level.WARN):
            self._ship(Level.WARN, output, data)

    def warndf(self, template: str, *values) -> Optional[str]:
        if not self.is_enabled_for(Level.WARN):
            return None
        message, data = format_data_message(template, *values)
        self._ship(Level.WARN, message, data)
        return message

    # ------------------------------------------------------------------
    # ERROR
    # ------------------------------------------------------------------

    def error(self, output: str):
        self.errord(output, None)

    def errorf(self, fmt: str, *args):
        if self.is_enabled_for(Level.ERROR):
            self._ship(Level.ERROR, printf_message(fmt, args), None)

    def errord(self, output: str, data: Data):
        if self.is_enabled_for(Level.ERROR):
            self._ship(Level.ERROR, output, data)

    def errordf(self, template: str, *values) -> Optional[str]:
        if not self.is_enabled_for(Level.ERROR):
            return None
        message, data = format_data_message(template, *values)
        self._ship(Level.ERROR, message, data)
        return message

    # ------------------------------------------------------------------
    # FATAL: ship, then exit(1) without waiting for delivery.
    # Ignored entirely once the client is shut down.
    # ------------------------------------------------------------------

    def fatal(self, output: str):
        self._fatal(output, None)

    def fatalf(self, fmt: str, *args):
        if self.is_enabled_for(Level.FATAL):
            self._fatal(printf_message(fmt, args), None)

    def fatald(self, output: str, data: Data):
        self._fatal(output, data)

    def fataldf(self, template: str, *values):
        if not self.is_enabled_for(Level.FATAL):
            return
        message, data = format_data_message(template, *values)
        self._fatal(message, data)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def flush(self) -> Optional[DeliveryOutcome]:
        """Drain the bulk buffer now, in the calling thread."""
        if self._batcher is None:
            return None
        self._stats.record_trigger("manual")
        return self._batcher.drain()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until in-flight sends and drains have finished."""
        return self._runner.wait(timeout)

    def shutdown(self, flush: bool = True, timeout: Optional[float] = 30.0):
        """Stop the scheduler, optionally drain, and release workers and HTTP.

        Safe to call more than once; log calls after shutdown are ignored.
        """
        with self._state_lock:
            if self._closed:
                return
            self._closed = True

        if self._scheduler is not None:
            self._scheduler.shutdown(wait=True)
        if not self._runner.wait(timeout):
            logger.warning("Timed out waiting for in-flight log deliveries")
        if flush and self._batcher is not None:
            self._batcher.drain()
        self._runner.shutdown(wait=True, cancel_pending=not flush)
        self._delivery.close()

        pending = self.pending_count
        if pending:
            logger.warning("Logger shut down with %d undelivered messages", pending)
        logger.debug("Logger shut down: %s", self._stats.snapshot())
        if self._owns_debug_output:
            disable_debug_output()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()
        return False
