"""Log levels and terminal-friendly formatting of log messages and values."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from enum import IntEnum
from typing import Any

TIME_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
TERM_MSG_JUST = 40
TERM_CTX_MAX_PADDING = 40
LEVEL_MAX_VERBOSITY = -(2**63)


class Level(IntEnum):
    """Severity of a log record; higher is more severe."""

    TRACE = -8
    DEBUG = -4
    INFO = 0
    WARN = 4
    ERROR = 8
    CRIT = 12


_ALIGNED_NAMES = {
    Level.TRACE: "TRACE",
    Level.DEBUG: "DEBUG",
    Level.INFO: "INFO ",
    Level.WARN: "WARN ",
    Level.ERROR: "ERROR",
    Level.CRIT: "CRIT ",
}

_NAMES = {
    Level.TRACE: "trace",
    Level.DEBUG: "debug",
    Level.INFO: "info",
    Level.WARN: "warn",
    Level.ERROR: "error",
    Level.CRIT: "crit",
}

_SIMPLE_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    '"': '\\"',
    "\\": "\\\\",
}


def level_aligned_string(level: int) -> str:
    """Return the five-character name of a level."""
    return _ALIGNED_NAMES.get(level, "unknown level")


def level_string(level: int) -> str:
    """Return the lower-case name of a level."""
    return _NAMES.get(level, "unknown")


def _quote(s: str) -> str:
    """Quote a string with backslash escapes for anything unprintable."""
    parts = ['"']
    for ch in s:
        escaped = _SIMPLE_ESCAPES.get(ch)
        if escaped is not None:
            parts.append(escaped)
            continue
        code = ord(ch)
        if 0x20 <= code < 0x7F:
            parts.append(ch)
        elif code < 0x20 or code == 0x7F:
            parts.append(f"\\x{code:02x}")
        elif 0xD800 <= code <= 0xDFFF:
            parts.append("\\ufffd")
        elif ch.isprintable():
            parts.append(ch)
        elif code < 0x10000:
            parts.append(f"\\u{code:04x}")
        else:
            parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)


def escape_message(s: str) -> str:
    """Quote a log message if it holds unprintable characters or '='.

    Carriage returns, newlines and tabs are allowed so multi-line
    messages stay readable.
    """
    for ch in s:
        if ch in "\r\n\t":
            continue
        if ch < " " or ch > "~" or ch == "=":
            return _quote(s)
    return s


def escape_string(s: str) -> str:
    """Quote or escape a key or value for terminal output where needed."""
    needs_quoting = False
    for ch in s:
        if ch in " =":
            needs_quoting = True
            continue
        if ch <= '"' or ch > "~":
            return _quote(s)
    if needs_quoting:
        return f'"{s}"'
    return s


def format_time_term(t: datetime) -> str:
    """Format a time as 'MM-DD|HH:MM:SS.mmm'."""
    return (
        f"{t.month:02d}-{t.day:02d}|"
        f"{t.hour:02d}:{t.minute:02d}:{t.second:02d}.{t.microsecond // 1000:03d}"
    )


def _aware(t: datetime) -> datetime:
    return t if t.tzinfo is not None else t.astimezone()


def _format_time(t: datetime) -> str:
    return _aware(t).strftime(TIME_FORMAT)


def format_int(n: int) -> str:
    """Format an integer, adding thousand separators from 100000 upwards."""
    n = int(n)
    if abs(n) < 100000:
        return str(n)
    return f"{n:,}"


def format_logfmt_uint64(n: int) -> str:
    """Format an unsigned 64-bit integer with thousand separators."""
    n = int(n)
    if n < 0 or n >= 2**64:
        raise ValueError(f"value out of unsigned 64-bit range: {n}")
    return format_int(n)


def _fraction(value: int, precision: int) -> str:
    whole, rest = divmod(value, 10**precision)
    digits = f"{rest:0{precision}d}".rstrip("0")
    return f"{whole}.{digits}" if digits else str(whole)


def _format_duration(td: timedelta) -> str:
    """Render a duration such as '1h2m3.5s', '1.5ms' or '0s'."""
    ns = ((td.days * 86400 + td.seconds) * 1_000_000 + td.microseconds) * 1000
    sign = "-" if ns < 0 else ""
    u = abs(ns)
    if u == 0:
        return "0s"
    if u < 1000:
        text = f"{u}ns"
    elif u < 1_000_000:
        text = _fraction(u, 3) + "µs"
    elif u < 1_000_000_000:
        text = _fraction(u, 6) + "ms"
    else:
        secs, frac = divmod(u, 1_000_000_000)
        text = _fraction((secs % 60) * 1_000_000_000 + frac, 9) + "s"
        minutes = secs // 60
        if minutes:
            text = f"{minutes % 60}m{text}"
            hours = minutes // 60
            if hours:
                text = f"{hours}h{text}"
    return sign + text


def _format_fixed3(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return f"{value:.3f}"


def format_value(value: Any) -> str:
    """Format a log attribute value for the terminal."""
    if value is None:
        return "<nil>"
    if isinstance(value, str):
        return escape_string(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return format_int(value)
    if isinstance(value, float):
        return _format_fixed3(value)
    if isinstance(value, timedelta):
        return escape_string(_format_duration(value))
    if isinstance(value, datetime):
        return _format_time(value)
    if isinstance(value, BaseException):
        return escape_string(str(value))
    terminal = getattr(value, "terminal_string", None)
    if callable(terminal):
        return escape_string(terminal())
    return escape_string(str(value))