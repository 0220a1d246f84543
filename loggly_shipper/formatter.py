"""Template formatting for structured log messages.

Templates contain ``@Name`` or ``@Name%verb`` tokens. Each token consumes the
next positional value, renders as ``Name=<value>`` and records ``Name`` ->
raw value in the returned data dict.

    >>> format_data_message("@UserId unlocked @GachaId", "<USERID>", 5)
    ('UserId=<USERID> unlocked GachaId=5', {'UserId': '<USERID>', 'GachaId': 5})
"""

import re
from typing import Any, Optional

FORMAT_ERROR = "[FORMAT ERROR]"

# Identifier is greedy over word characters; a '%' switches to the verb.
# ASCII keeps \w and \b to [A-Za-z0-9_].
TOKEN_PATTERN = re.compile(r"@\w*%?[#+.\-\w]*\b", re.ASCII)


def _render_value(value: Any, verb: Optional[str]) -> str:
    """Render *value* with a printf-style verb (without the leading '%')."""
    if not verb:
        return str(value)

    flags, conversion = verb[:-1], verb[-1]
    if conversion == "v":
        conversion = "s"
        flags = flags.replace("#", "").replace("+", "")
    elif conversion == "q":
        conversion = "r"

    try:
        return ("%" + flags + conversion) % (value,)
    except (TypeError, ValueError, OverflowError):
        return f"%!{verb[-1]}({type(value).__name__}={value})"


def _split_token(token: str) -> tuple[str, Optional[str]]:
    body = token[1:]
    if "%" in body:
        name, verb = body.split("%", 1)
        return name, verb
    return body, None


def format_data_message(template: str, *values: Any) -> tuple[str, dict[str, Any]]:
    """Render *template* against *values*.

    Returns the rendered message and a dict mapping each token name to the
    raw value it consumed. Tokens past the last value render as
    ``[FORMAT ERROR]`` and consume nothing.
    """
    data: dict[str, Any] = {}
    position = 0

    def substitute(match: re.Match) -> str:
        nonlocal position
        token = match.group(0)
        if position >= len(values):
            return FORMAT_ERROR
        if len(token) <= 1:
            return token

        name, verb = _split_token(token)
        value = values[position]
        position += 1
        data[name] = value
        return f"{name}={_render_value(value, verb)}"

    message = TOKEN_PATTERN.sub(substitute, template)
    return message, data


def printf_message(fmt: str, args: tuple) -> str:
    """Apply %-style *args* to *fmt*; a mismatch is reported inline, not raised."""
    if not args:
        return fmt
    try:
        return fmt % args
    except (TypeError, ValueError, OverflowError):
        return f"{fmt} {FORMAT_ERROR} {args!r}"


def render_line(
    timestamp: str, level: str, message: str, data: Optional[dict] = None
) -> str:
    """Console form of an event: ``<ts> [LEVEL] message [data]``."""
    if data is None:
        return f"{timestamp} [{level}] {message}"
    return f"{timestamp} [{level}] {message} {data}"
