"""A log sink that batches JSON log lines and stores them in a collection."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Optional

_log = logging.getLogger(__name__)


def _document(entry: Any) -> Any:
    to_dict = getattr(entry, "to_dict", None)
    return to_dict() if callable(to_dict) else entry


class MongoLogSink:
    """Buffers log entries and inserts them in batches.

    A batch is written when the buffer reaches ``max_batch_size`` entries or
    every ``flush_interval`` seconds once the background flusher is started.
    """

    def __init__(
        self,
        get_collection: Optional[Callable[[], Any]],
        parse: Optional[Callable[[Any], Any]] = None,
        max_batch_size: int = 5,
        flush_interval: float = 5.0,
    ):
        self.get_collection = get_collection
        self.max_batch_size = max_batch_size
        self.flush_interval = flush_interval
        self._parse = parse if parse is not None else (lambda data: data)
        self._buffer: list[Any] = []
        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def write(self, data: bytes | str) -> int:
        """Parse one JSON log line into the buffer; return the number of bytes taken."""
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        try:
            entry = self._parse(json.loads(text))
        except ValueError:
            _log.warning("log sink could not decode entry")
            raise
        with self._lock:
            self._buffer.append(entry)
            full = len(self._buffer) >= self.max_batch_size
        if full:
            self._wake.set()
        return len(data)

    def flush(self) -> int:
        """Insert everything buffered; return how many entries were written."""
        with self._lock:
            if not self._buffer:
                return 0
            if self.get_collection is None:
                _log.error("log sink has no collection getter")
                raise RuntimeError("get_collection is not set")
            try:
                collection = self.get_collection()
                collection.insert_many([_document(entry) for entry in self._buffer])
            except Exception:
                _log.exception("log sink failed to store entries")
                raise
            count = len(self._buffer)
            self._buffer.clear()
            return count

    def sync(self) -> int:
        """Flush the buffer now."""
        _log.debug("log sink sync")
        return self.flush()

    def start(self) -> "MongoLogSink":
        """Start the background flusher if it is not running."""
        if self._thread is not None and self._thread.is_alive():
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="mongo-log-sink", daemon=True)
        self._thread.start()
        return self

    def close(self) -> None:
        """Stop the background flusher and write what is left."""
        self._stop.set()
        self._wake.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self.sync()

    def __enter__(self) -> "MongoLogSink":
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _run(self) -> None:
        while not self._stop.is_set():
            self._wake.wait(self.flush_interval)
            self._wake.clear()
            if self._stop.is_set():
                break
            try:
                self.flush()
            except Exception:
                pass