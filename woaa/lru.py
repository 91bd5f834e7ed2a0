"""A small thread-safe least-recently-used cache that creates missing values."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable, Generic, TypeVar

T = TypeVar("T")

_log = logging.getLogger(__name__)


class LRUCache(Generic[T]):
    """Holds up to ``max_count`` values, building missing ones with ``creator``."""

    def __init__(self, max_count: int, creator: Callable[[str], T]):
        self.max_count = max_count
        self._creator = creator
        self._items: "OrderedDict[str, T]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> T:
        """Return the value for ``key``, creating it and evicting the oldest if needed."""
        with self._lock:
            if key in self._items:
                self._items.move_to_end(key)
                return self._items[key]

            value = self._creator(key)

            if len(self._items) >= self.max_count and self._items:
                oldest, _ = self._items.popitem(last=False)
                _log.debug("lru full, removed %s", oldest)

            self._items[key] = value
            _log.debug("lru created %s", key)
            return value

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items