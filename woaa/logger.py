"""Structured logger with key/value context and a process-wide root logger."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any, Iterable

from woaa.handlers import DiscardHandler, Record
from woaa.logfmt import Level

ERROR_KEY = "LOG_ERROR"
BAD_KEY = "!BADKEY"
_ODD_ARGS_MESSAGE = "Normalized odd number of arguments by adding nil"


def _pairs(args: Iterable[Any]) -> list[tuple[str, Any]]:
    """Turn alternating keys and values into (key, value) pairs.

    A two-item tuple whose first item is a string is taken as a ready pair;
    anything in key position that is not a string is kept under BAD_KEY.
    """
    pairs: list[tuple[str, Any]] = []
    items = iter(args)
    for item in items:
        if isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str):
            pairs.append(item)
        elif isinstance(item, str):
            try:
                value = next(items)
            except StopIteration:
                pairs.append((BAD_KEY, item))
                break
            pairs.append((item, value))
        else:
            pairs.append((BAD_KEY, item))
    return pairs


class Logger:
    """Writes records with key/value context to a handler."""

    def __init__(self, handler: Any):
        self.handler = handler

    def bind(self, *args: Any) -> "Logger":
        """Return a logger that adds the given key/value pairs to every record."""
        return Logger(self.handler.with_attrs(_pairs(args)))

    def new(self, *args: Any) -> "Logger":
        """Same as bind."""
        return self.bind(*args)

    def write(self, level: int, msg: str, *args: Any) -> None:
        """Log a message at the given level with key/value context."""
        if not self.enabled(level):
            return
        if len(args) % 2:
            args = (*args, None, ERROR_KEY, _ODD_ARGS_MESSAGE)
        record = Record(datetime.now().astimezone(), level, msg, _pairs(args))
        self.handler.handle(record)

    def log(self, level: int, msg: str, *args: Any) -> None:
        self.write(level, msg, *args)

    def trace(self, msg: str, *args: Any) -> None:
        self.write(Level.TRACE, msg, *args)

    def debug(self, msg: str, *args: Any) -> None:
        self.write(Level.DEBUG, msg, *args)

    def info(self, msg: str, *args: Any) -> None:
        self.write(Level.INFO, msg, *args)

    def warn(self, msg: str, *args: Any) -> None:
        self.write(Level.WARN, msg, *args)

    def error(self, msg: str, *args: Any) -> None:
        self.write(Level.ERROR, msg, *args)

    def crit(self, msg: str, *args: Any) -> None:
        """Log at the critical level, then exit the process with status 1."""
        self.write(Level.CRIT, msg, *args)
        raise SystemExit(1)

    def enabled(self, level: int) -> bool:
        return self.handler.enabled(level)


_root_lock = threading.Lock()
_root = Logger(DiscardHandler())


def set_default(logger: Logger) -> None:
    """Replace the root logger."""
    global _root
    with _root_lock:
        _root = logger


def root() -> Logger:
    """Return the root logger."""
    with _root_lock:
        return _root


def trace(msg: str, *args: Any) -> None:
    root().write(Level.TRACE, msg, *args)


def debug(msg: str, *args: Any) -> None:
    root().write(Level.DEBUG, msg, *args)


def info(msg: str, *args: Any) -> None:
    root().write(Level.INFO, msg, *args)


def warn(msg: str, *args: Any) -> None:
    root().write(Level.WARN, msg, *args)


def error(msg: str, *args: Any) -> None:
    root().write(Level.ERROR, msg, *args)


def crit(msg: str, *args: Any) -> None:
    """Log at the critical level on the root logger, then exit with status 1."""
    root().write(Level.CRIT, msg, *args)
    raise SystemExit(1)


def new(*args: Any) -> Logger:
    """Return the root logger bound to the given key/value pairs."""
    return root().bind(*args)