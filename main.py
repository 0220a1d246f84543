"""Demo entry point: ships randomly generated sample logs to Loggly."""

import argparse
import logging
import random
import signal
import threading
import time

from loggly_shipper.client import LogglyClient
from loggly_shipper.config import load_config

SAMPLE_EVENTS = [
    ("debug", "Cache miss for key @Key", ("session:42",)),
    ("info", "User @UserId logged in", ("u-1001",)),
    ("info", "Request @Path served in @Millis%.1f ms", ("/api/items", 12.34)),
    ("info", "Health check passed", ()),
    ("warn", "Disk usage at @Percent%d percent", (87,)),
    ("error", "Connection timeout to @Upstream after @Seconds s", ("db-primary", 30)),
]


def _parse_demo_args(argv=None):
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("--logs-per-second", type=int, default=5)
    parser.add_argument("--run-time", type=int, default=30)
    args, _ = parser.parse_known_args(argv)
    return args


def generate_sample_logs(client: LogglyClient, logs_per_second: int, run_time: int,
                         shutdown_event: threading.Event):
    """Emit random sample events at the given rate for *run_time* seconds."""
    levels = {
        "debug": client.debugdf,
        "info": client.infodf,
        "warn": client.warndf,
        "error": client.errordf,
    }
    gap = 1.0 / max(logs_per_second, 1)
    end = time.monotonic() + run_time
    next_at = time.monotonic()
    while time.monotonic() < end:
        level, template, values = random.choice(SAMPLE_EVENTS)
        levels[level](template, *values)

        next_at += gap
        if shutdown_event.wait(timeout=max(next_at - time.monotonic(), 0)):
            break


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    config = load_config()
    demo = _parse_demo_args()
    shutdown_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    client = LogglyClient(config)
    logger.info(
        "Shipping sample logs: mode=%s, buffer_size=%d, flush_interval=%.1fs, rate=%d/s",
        "bulk" if config.bulk else "single",
        config.buffer_size,
        config.flush_interval,
        demo.logs_per_second,
    )

    try:
        generate_sample_logs(client, demo.logs_per_second, demo.run_time, shutdown_event)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        client.shutdown()
        logger.info("Shipping stats: %s", client.stats.snapshot())


if __name__ == "__main__":
    main()
