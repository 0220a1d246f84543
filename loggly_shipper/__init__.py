"""HTTP log shipping client for Loggly-style collection endpoints."""

import logging

from loggly_shipper.client import LogglyClient
from loggly_shipper.config import LoggerConfig, build_endpoint, load_config
from loggly_shipper.delivery import DeliveryClient, DeliveryOutcome, OutcomeKind
from loggly_shipper.facade import get_logger, setup_logger, shutdown_logger
from loggly_shipper.formatter import format_data_message
from loggly_shipper.handler import LogglyHandler
from loggly_shipper.models import Level, LogMessage

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DeliveryClient",
    "DeliveryOutcome",
    "Level",
    "LogMessage",
    "LoggerConfig",
    "LogglyClient",
    "LogglyHandler",
    "OutcomeKind",
    "build_endpoint",
    "format_data_message",
    "get_logger",
    "load_config",
    "setup_logger",
    "shutdown_logger",
]
