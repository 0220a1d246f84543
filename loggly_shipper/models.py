"""Log message model and severity levels."""

import datetime
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional


class Level(IntEnum):
    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4

    def __str__(self) -> str:
        return self.name

    @classmethod
    def parse(cls, value) -> "Level":
        """Accept a Level, an ordinal (int or numeric string), or a level name."""
        if isinstance(value, Level):
            return value
        if isinstance(value, int):
            return cls(value)
        text = str(value).strip().upper()
        if text.isdigit():
            return cls(int(text))
        if text == "WARNING":
            text = "WARN"
        try:
            return cls[text]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None


def now_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2024-01-15T08:23:45.120Z."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class LogMessage:
    timestamp: str
    level: str
    message: str
    data: Optional[dict[str, Any]] = None


def create_log_message(
    level: Level,
    message: str,
    data: Optional[dict[str, Any]] = None,
    timestamp: Optional[str] = None,
) -> LogMessage:
    """Factory that stamps a new LogMessage with the current time."""
    return LogMessage(
        timestamp=timestamp if timestamp is not None else now_timestamp(),
        level=str(Level.parse(level)),
        message=message,
        data=data,
    )


def message_to_dict(message: LogMessage) -> dict:
    """Convert a LogMessage to the wire dictionary. Data is not copied."""
    return {
        "timestamp": message.timestamp,
        "level": message.level,
        "message": message.message,
        "data": message.data,
    }
