"""Process-wide logger: first setup wins, module-level helpers delegate to it.

    setup_logger("token", Level.INFO, ["web"], bulk=True)
    info("service started")
    infodf("@UserId unlocked @GachaId", user_id, gacha_id)

Until setup_logger has been called every helper is a no-op.
"""

import atexit
import logging
import threading
from typing import Any, Optional

from loggly_shipper.client import LogglyClient
from loggly_shipper.config import LoggerConfig
from loggly_shipper.models import Level

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_instance: Optional[LogglyClient] = None
_atexit_registered = False


def setup_logger(
    token: str,
    level=Level.DEBUG,
    tags=(),
    bulk: bool = False,
    debug: bool = False,
    **options: Any,
) -> LogglyClient:
    """Create the process-wide client.

    Later calls return the existing client and ignore their arguments.
    Extra keyword *options* are LoggerConfig fields (buffer_size,
    flush_interval, base_url, ...) plus ``transport`` for the HTTP layer.
    """
    global _instance, _atexit_registered
    with _lock:
        if _instance is not None:
            logger.debug("Logger already set up, ignoring new configuration")
            return _instance

        transport = options.pop("transport", None)
        config = LoggerConfig(
            token=token, level=level, tags=tags, bulk=bulk, debug=debug, **options
        )
        _instance = LogglyClient(config, transport=transport)
        if not _atexit_registered:
            atexit.register(shutdown_logger)
            _atexit_registered = True
        return _instance


def get_logger() -> Optional[LogglyClient]:
    return _instance


def shutdown_logger(flush: bool = True):
    """Shut the process-wide client down and forget it."""
    global _instance
    with _lock:
        client, _instance = _instance, None
    if client is not None:
        client.shutdown(flush=flush)


def debug(output: str):
    if _instance is not None:
        _instance.debug(output)


def debugf(fmt: str, *args):
    if _instance is not None:
        _instance.debugf(fmt, *args)


def debugd(output: str, data):
    if _instance is not None:
        _instance.debugd(output, data)


def debugdf(template: str, *values) -> Optional[str]:
    return _instance.debugdf(template, *values) if _instance is not None else None


def info(output: str):
    if _instance is not None:
        _instance.info(output)


def infof(fmt: str, *args):
    if _instance is not None:
        _instance.infof(fmt, *args)


def infod(output: str, data):
    if _instance is not None:
        _instance.infod(output, data)


def infodf(template: str, *values) -> Optional[str]:
    return _instance.infodf(template, *values) if _instance is not None else None


def warn(output: str):
    if _instance is not None:
        _instance.warn(output)


def warnf(fmt: str, *args):
    if _instance is not None:
        _instance.warnf(fmt, *args)


def warnd(output: str, data):
    if _instance is not None:
        _instance.warnd(output, data)


def warndf(template: str, *values) -> Optional[str]:
    return _instance.warndf(template, *values) if _instance is not None else None


def error(output: str):
    if _instance is not None:
        _instance.error(output)


def errorf(fmt: str, *args):
    if _instance is not None:
        _instance.errorf(fmt, *args)


def errord(output: str, data):
    if _instance is not None:
        _instance.errord(output, data)


def errordf(template: str, *values) -> Optional[str]:
    return _instance.errordf(template, *values) if _instance is not None else None


def fatal(output: str):
    if _instance is not None:
        _instance.fatal(output)


def fatalf(fmt: str, *args):
    if _instance is not None:
        _instance.fatalf(fmt, *args)


def fatald(output: str, data):
    if _instance is not None:
        _instance.fatald(output, data)


def fataldf(template: str, *values):
    if _instance is not None:
        _instance.fataldf(template, *values)
