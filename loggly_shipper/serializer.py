"""Message serializer: one JSON object per event, NDJSON for bulk bodies."""

import json
import logging
from typing import Iterable

from loggly_shipper.models import LogMessage, message_to_dict

logger = logging.getLogger(__name__)


class SerializationError(ValueError):
    """A log message could not be encoded as JSON."""


def encode_message(message: LogMessage) -> bytes:
    """Serialize a single message to compact UTF-8 JSON (no trailing newline).

    Raises SerializationError when the data dict holds values json cannot
    encode, including NaN and infinities.
    """
    try:
        text = json.dumps(message_to_dict(message), separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise SerializationError(str(exc)) from exc
    return text.encode("utf-8")


def encode_bulk(messages: Iterable[LogMessage]) -> bytes:
    """Serialize messages as newline-terminated JSON records.

    Messages that fail to encode are skipped and logged; the rest of the
    batch is kept.
    """
    chunks: list[bytes] = []
    for message in messages:
        try:
            chunks.append(encode_message(message) + b"\n")
        except SerializationError as exc:
            logger.warning("Dropping unserializable log message %r: %s", message.message, exc)
    return b"".join(chunks)


def decode_bulk(body: bytes) -> list[dict]:
    """Parse an NDJSON body back into dicts. Blank lines are ignored."""
    return [json.loads(line) for line in body.decode("utf-8").splitlines() if line.strip()]
