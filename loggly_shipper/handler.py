"""logging.Handler that forwards stdlib log records to a LogglyClient."""

import logging

from loggly_shipper.client import LogglyClient
from loggly_shipper.log_setup import PACKAGE_LOGGER
from loggly_shipper.models import Level

# records from the shipper and its HTTP/scheduler stack would feed back into it
IGNORED_LOGGERS = frozenset({PACKAGE_LOGGER, "httpx", "httpcore", "apscheduler"})


def level_for_record(levelno: int) -> Level:
    if levelno >= logging.CRITICAL:
        return Level.FATAL
    if levelno >= logging.ERROR:
        return Level.ERROR
    if levelno >= logging.WARNING:
        return Level.WARN
    if levelno >= logging.INFO:
        return Level.INFO
    return Level.DEBUG


class LogglyHandler(logging.Handler):
    """Ships records through *client*.

    Structured data is taken from ``extra={"data": {...}}``. CRITICAL records
    go out as FATAL but never terminate the process.
    """

    def __init__(self, client: LogglyClient, level=logging.NOTSET):
        super().__init__(level)
        self._client = client

    def emit(self, record: logging.LogRecord):
        if record.name.split(".", 1)[0] in IGNORED_LOGGERS:
            return
        try:
            message = self.format(record)
            data = getattr(record, "data", None)
            if data is not None and not isinstance(data, dict):
                data = {"data": data}
            self._client.log(level_for_record(record.levelno), message, data)
        except Exception:
            self.handleError(record)
