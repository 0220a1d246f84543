"""Configuration: frozen dataclass layered from defaults, YAML, env vars and CLI args."""

import argparse
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Optional

import yaml

from loggly_shipper.models import Level

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://logs-01.loggly.com"
SINGLE_PATH = "inputs"
BULK_PATH = "bulk"


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_tags(value) -> tuple[str, ...]:
    if isinstance(value, str):
        return tuple(tag.strip() for tag in value.split(",") if tag.strip())
    return tuple(str(tag) for tag in value)


def _parse_optional_int(value) -> Optional[int]:
    if value is None or str(value).strip().lower() in ("", "none", "0"):
        return None
    return int(value)


def build_endpoint(base_url: str, bulk: bool, token: str, tags) -> str:
    """Endpoint URL: <base>/<inputs|bulk>/<token>/tag/<comma-joined-tags>/"""
    path = BULK_PATH if bulk else SINGLE_PATH
    return f"{base_url.rstrip('/')}/{path}/{token}/tag/{','.join(tags)}/"


@dataclass(frozen=True)
class LoggerConfig:
    token: str = ""
    level: Level = Level.DEBUG
    tags: tuple[str, ...] = field(default_factory=tuple)
    bulk: bool = False
    debug: bool = False
    buffer_size: int = 1000
    flush_interval: float = 10.0
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = 10.0
    max_workers: int = 8
    max_buffered_messages: Optional[int] = None

    def __post_init__(self):
        # normalise the loosely-typed inputs, the dataclass stays frozen
        object.__setattr__(self, "level", Level.parse(self.level))
        object.__setattr__(self, "tags", _parse_tags(self.tags))
        object.__setattr__(self, "bulk", _parse_bool(self.bulk))
        object.__setattr__(self, "debug", _parse_bool(self.debug))
        if self.max_buffered_messages is not None and self.max_buffered_messages < 1:
            raise ValueError("max_buffered_messages must be positive or None")
        if self.buffer_size < 1:
            raise ValueError("buffer_size must be at least 1")
        if self.flush_interval <= 0:
            raise ValueError("flush_interval must be positive")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    @property
    def url(self) -> str:
        return build_endpoint(self.base_url, self.bulk, self.token, self.tags)


# env var -> (field, parser)
ENV_VARS = {
    "LOGGLY_TOKEN": ("token", str),
    "LOGGLY_LEVEL": ("level", Level.parse),
    "LOGGLY_TAGS": ("tags", _parse_tags),
    "LOGGLY_BULK": ("bulk", _parse_bool),
    "LOGGLY_DEBUG": ("debug", _parse_bool),
    "LOGGLY_BUFFER_SIZE": ("buffer_size", int),
    "LOGGLY_FLUSH_INTERVAL": ("flush_interval", float),
    "LOGGLY_BASE_URL": ("base_url", str),
    "LOGGLY_REQUEST_TIMEOUT": ("request_timeout", float),
    "LOGGLY_MAX_WORKERS": ("max_workers", int),
    "LOGGLY_MAX_BUFFERED": ("max_buffered_messages", _parse_optional_int),
}

_FIELD_NAMES = {f.name for f in fields(LoggerConfig)}


def load_yaml_config(path: Optional[str]) -> dict:
    """Read config keys from a YAML file. Returns {} if no path or the file is missing."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    section = data.get("loggly", data)
    unknown = set(section) - _FIELD_NAMES
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", path, sorted(unknown))
    logger.info("Loaded YAML config from %s", path)
    return {key: value for key, value in section.items() if key in _FIELD_NAMES}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Loggly log shipper")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--token", type=str, default=None)
    parser.add_argument("--level", type=str, default=None)
    parser.add_argument("--tags", type=str, default=None, help="comma-separated tags")
    parser.add_argument("--bulk", action="store_true", default=None)
    parser.add_argument("--debug", action="store_true", default=None)
    parser.add_argument("--buffer-size", type=int, default=None)
    parser.add_argument("--flush-interval", type=float, default=None)
    parser.add_argument("--base-url", type=str, default=None)
    parser.add_argument("--request-timeout", type=float, default=None)
    parser.add_argument("--max-workers", type=int, default=None)
    parser.add_argument(
        "--max-buffered",
        type=_parse_optional_int,
        default=None,
        dest="max_buffered_messages",
    )
    return parser


def load_config(argv: Optional[list[str]] = None) -> LoggerConfig:
    """Build LoggerConfig from defaults <- YAML <- env vars <- CLI args.

    Pass argv for testability; when None, argparse reads sys.argv. Flags
    this parser does not know are left for the caller.
    """
    args, _unknown = _build_parser().parse_known_args(argv)

    yaml_path = args.config or os.environ.get("LOGGLY_CONFIG")
    kwargs: dict = load_yaml_config(yaml_path)

    for var, (name, convert) in ENV_VARS.items():
        raw = os.environ.get(var)
        if raw is not None:
            kwargs[name] = convert(raw)

    for name in _FIELD_NAMES:
        value = getattr(args, name, None)
        if value is not None:
            kwargs[name] = value

    return LoggerConfig(**kwargs)
