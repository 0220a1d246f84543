"""Wiring for the package's own diagnostic logger."""

import logging
import sys

PACKAGE_LOGGER = "loggly_shipper"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_DEBUG_HANDLER_NAME = "loggly-shipper-debug"


def _debug_handler():
    for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
        if handler.get_name() == _DEBUG_HANDLER_NAME:
            return handler
    return None


def debug_output_enabled() -> bool:
    return _debug_handler() is not None


def enable_debug_output(stream=None) -> logging.Handler:
    """Send the package's diagnostics to stderr at DEBUG level.

    Idempotent: the handler is only attached once.
    """
    existing = _debug_handler()
    if existing is not None:
        return existing

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_DEBUG_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG)
    return handler


def disable_debug_output():
    """Detach the handler added by enable_debug_output, if any."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        if handler.get_name() == _DEBUG_HANDLER_NAME:
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.setLevel(logging.NOTSET)
