"""Log record handlers: terminal, JSON, logfmt and a discarding one."""

from __future__ import annotations

import json
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Iterable, TextIO

from woaa.logfmt import (
    LEVEL_MAX_VERBOSITY,
    TERM_CTX_MAX_PADDING,
    TERM_MSG_JUST,
    Level,
    _aware,
    _format_duration,
    _format_time,
    _quote,
    escape_message,
    escape_string,
    format_time_term,
    format_value,
    level_aligned_string,
    level_string,
)

_RESET = "\x1b[0m"

_COLORS = {
    Level.CRIT: "\x1b[35m",
    Level.ERROR: "\x1b[31m",
    Level.WARN: "\x1b[33m",
    Level.INFO: "\x1b[32m",
    Level.DEBUG: "\x1b[36m",
    Level.TRACE: "\x1b[34m",
}


@dataclass
class Record:
    """A single log event with its key/value attributes."""

    time: datetime
    level: int
    message: str
    attrs: list[tuple[str, Any]] = field(default_factory=list)


class DiscardHandler:
    """A handler that drops every record."""

    def handle(self, record: Record) -> None:
        return None

    def enabled(self, level: int) -> bool:
        return False

    def with_attrs(self, attrs: Iterable[tuple[str, Any]]) -> "DiscardHandler":
        return DiscardHandler()


class TerminalHandler:
    """Human-readable, optionally coloured, output for interactive use.

    Lines look like ``LEVEL[MM-DD|HH:MM:SS.mmm] MESSAGE key=value ...``.
    """

    def __init__(self, writer: TextIO, level: int = LEVEL_MAX_VERBOSITY, use_color: bool = False):
        self.writer = writer
        self.level = level
        self.use_color = use_color
        self.attrs: list[tuple[str, Any]] = []
        self._field_padding: dict[str, int] = {}
        self._lock = threading.Lock()

    def handle(self, record: Record) -> None:
        with self._lock:
            self.writer.write(self.format(record))

    def enabled(self, level: int) -> bool:
        return level >= self.level

    def with_attrs(self, attrs: Iterable[tuple[str, Any]]) -> "TerminalHandler":
        handler = TerminalHandler(self.writer, self.level, self.use_color)
        handler.attrs = [*self.attrs, *attrs]
        return handler

    def reset_field_padding(self) -> None:
        """Forget the widths seen so far for every attribute key."""
        with self._lock:
            self._field_padding = {}

    def format(self, record: Record) -> str:
        """Render a record as one terminal line, newline included."""
        msg = escape_message(record.message)
        color = _COLORS.get(record.level, "") if self.use_color else ""
        level_text = level_aligned_string(record.level)
        parts = [
            f"{color}{level_text}{_RESET}" if color else level_text,
            "[",
            format_time_term(record.time),
            "] ",
            msg,
        ]
        attrs = [*self.attrs, *record.attrs]
        length = len(msg.encode("utf-8"))
        if attrs and length < TERM_MSG_JUST:
            parts.append(" " * (TERM_MSG_JUST - length))

        last = len(attrs) - 1
        for index, (key, value) in enumerate(attrs):
            parts.append(" ")
            escaped_key = escape_string(key)
            parts.append(f"{color}{escaped_key}{_RESET}=" if color else f"{escaped_key}=")
            text = format_value(value)
            padding = self._field_padding.get(key, 0)
            width = len(text)
            if padding < width <= TERM_CTX_MAX_PADDING:
                padding = width
                self._field_padding[key] = padding
            parts.append(text)
            if index != last and padding > width:
                parts.append(" " * (padding - width))
        parts.append("\n")
        return "".join(parts)


def builtin_replace(key: str, value: Any, logfmt: bool) -> tuple[str, Any]:
    """Rename the built-in time and level keys and normalise values.

    Times become text in logfmt output, and values that have no natural
    encoding are turned into strings.
    """
    if key == "time" and isinstance(value, datetime):
        return "t", (_format_time(value) if logfmt else value)
    if key == "level" and isinstance(value, Level):
        return "lvl", level_string(value)
    if isinstance(value, datetime):
        return key, (_format_time(value) if logfmt else value)
    if value is None or isinstance(
        value, (bool, str, float, timedelta, BaseException, list, tuple, dict)
    ):
        return key, value
    if isinstance(value, int):
        if -(2**63) <= value < 2**64:
            return key, value
        return key, str(value)
    return key, str(value)


def _shortest_digits(f: float) -> tuple[str, int]:
    _, digits, exponent = Decimal(repr(abs(f))).normalize().as_tuple()
    text = "".join(map(str, digits))
    return text, len(text) + exponent


def _fixed(digits: str, dp: int) -> str:
    if dp <= 0:
        return "0." + "0" * (-dp) + digits
    if dp >= len(digits):
        return digits + "0" * (dp - len(digits))
    return f"{digits[:dp]}.{digits[dp:]}"


def _exponent(digits: str, dp: int) -> str:
    x = dp - 1
    mantissa = digits[0] + (f".{digits[1:]}" if len(digits) > 1 else "")
    sign = "-" if x < 0 else "+"
    return f"{mantissa}e{sign}{abs(x):02d}"


def _special_float(f: float) -> str | None:
    if math.isnan(f):
        return "NaN"
    if math.isinf(f):
        return "+Inf" if f > 0 else "-Inf"
    return None


def _text_float(f: float) -> str:
    special = _special_float(f)
    if special is not None:
        return special
    sign = "-" if math.copysign(1.0, f) < 0 else ""
    digits, dp = _shortest_digits(f)
    x = dp - 1
    if x < -4 or x >= 6:
        return sign + _exponent(digits, dp)
    return sign + _fixed(digits, dp)


def _json_float(f: float) -> str:
    special = _special_float(f)
    if special is not None:
        return json.dumps(special)
    sign = "-" if math.copysign(1.0, f) < 0 else ""
    digits, dp = _shortest_digits(f)
    magnitude = abs(f)
    if magnitude != 0 and (magnitude < 1e-6 or magnitude >= 1e21):
        x = dp - 1
        mantissa = digits[0] + (f".{digits[1:]}" if len(digits) > 1 else "")
        if x < 0:
            return f"{sign}{mantissa}e-{-x}"
        return f"{sign}{mantissa}e+{x:02d}"
    return sign + _fixed(digits, dp)


def _rfc3339_nano(t: datetime) -> str:
    t = _aware(t)
    text = t.strftime("%Y-%m-%dT%H:%M:%S")
    fraction = f"{t.microsecond:06d}".rstrip("0")
    if fraction:
        text += "." + fraction
    offset = t.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "-" if total < 0 else "+"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _duration_ns(td: timedelta) -> int:
    return ((td.days * 86400 + td.seconds) * 1_000_000 + td.microseconds) * 1000


def _json_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return _json_float(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, datetime):
        return json.dumps(_rfc3339_nano(value))
    if isinstance(value, timedelta):
        return str(_duration_ns(value))
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return json.dumps(str(value), ensure_ascii=False)


def _needs_text_quoting(s: str) -> bool:
    if not s:
        return True
    for ch in s:
        code = ord(ch)
        if code < 0x80:
            if ch != "\\" and (ch in ' ="' or code < 0x20 or code == 0x7F):
                return True
        elif ch.isspace() or not ch.isprintable():
            return True
    return False


def _text_string(s: str) -> str:
    return _quote(s) if _needs_text_quoting(s) else s


def _text_value(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return _text_float(value)
    if isinstance(value, timedelta):
        return _text_string(_format_duration(value))
    if isinstance(value, datetime):
        return _format_time(value)
    return _text_string(str(value))


class _StructuredHandler:
    """Shared behaviour of the machine-readable handlers."""

    _logfmt = False

    def __init__(self, writer: TextIO, level: int):
        self.writer = writer
        self.level = level
        self.attrs: list[tuple[str, Any]] = []
        self._lock = threading.Lock()

    def handle(self, record: Record) -> None:
        line = self._render(self._entries(record))
        with self._lock:
            self.writer.write(line)

    def enabled(self, level: int) -> bool:
        return level >= self.level

    def with_attrs(self, attrs: Iterable[tuple[str, Any]]):
        handler = type(self)(self.writer, self.level)
        handler.attrs = [*self.attrs, *attrs]
        return handler

    def _entries(self, record: Record) -> list[tuple[str, Any]]:
        entries = [
            builtin_replace("time", record.time, self._logfmt),
            ("lvl", level_string(record.level)),
            ("msg", record.message),
        ]
        entries.extend(
            builtin_replace(key, value, self._logfmt)
            for key, value in [*self.attrs, *record.attrs]
        )
        return entries

    def _render(self, entries: list[tuple[str, Any]]) -> str:
        raise NotImplementedError


class JSONHandler(_StructuredHandler):
    """Writes each record as one JSON object per line."""

    def __init__(self, writer: TextIO, level: int = LEVEL_MAX_VERBOSITY):
        super().__init__(writer, level)

    def handle(self, record: Record) -> None:
        super().handle(record)

    def enabled(self, level: int) -> bool:
        return super().enabled(level)

    def with_attrs(self, attrs: Iterable[tuple[str, Any]]) -> "JSONHandler":
        return super().with_attrs(attrs)

    def _render(self, entries: list[tuple[str, Any]]) -> str:
        body = ",".join(
            f"{json.dumps(key, ensure_ascii=False)}:{_json_value(value)}"
            for key, value in entries
        )
        return "{" + body + "}\n"


class LogfmtHandler(_StructuredHandler):
    """Writes each record as space-separated key=value pairs."""

    _logfmt = True

    def __init__(self, writer: TextIO, level: int = Level.INFO):
        super().__init__(writer, level)

    def handle(self, record: Record) -> None:
        super().handle(record)

    def enabled(self, level: int) -> bool:
        return super().enabled(level)

    def with_attrs(self, attrs: Iterable[tuple[str, Any]]) -> "LogfmtHandler":
        return super().with_attrs(attrs)

    def _render(self, entries: list[tuple[str, Any]]) -> str:
        return " ".join(f"{_text_string(key)}={_text_value(value)}" for key, value in entries) + "\n"