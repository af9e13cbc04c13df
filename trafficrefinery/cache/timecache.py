"""A thread-safe map whose entries expire by time-to-live and disuse."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class TimeItem:
    """A cached value with its expiration and last-use times (Unix seconds)."""

    object: Any
    expiration: int
    last_used: int


class SimpleTimeCache:
    """Key/value cache with optional periodic cleanup.

    ``cleanup_time`` and ``evict_time`` are in seconds. When ``cleanup_time``
    is positive, a background thread calls :meth:`clear_cache` at that period.
    """

    def __init__(
        self,
        cleanup_time: float,
        evict_time: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._items: dict[str, TimeItem] = {}
        self._lock = threading.Lock()
        self.cleanup_time = cleanup_time
        self.evict_time = evict_time
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        if self.cleanup_time > 0:
            self._thread = threading.Thread(target=self._run_timer, daemon=True)
            self._thread.start()

    def _now(self) -> int:
        return int(self._clock())

    def insert(self, key: str, value: Any, ttl: int) -> None:
        """Store ``value`` under ``key``; a ``ttl`` of 0 never expires."""
        now = self._now()
        expiration = 0 if ttl == 0 else now + ttl
        item = TimeItem(object=value, expiration=expiration, last_used=now)
        with self._lock:
            self._items[key] = item

    def lookup(self, key: str) -> Any:
        """Return the value under ``key``.

        Raises KeyError if the key is absent or its TTL has passed; expired
        entries are dropped.
        """
        now = self._now()
        with self._lock:
            entry = self._items.get(key)
            if entry is None:
                raise KeyError(key)
            if 0 < entry.expiration < now:
                del self._items[key]
                raise KeyError(key)
            return entry.object

    def clear_cache(self) -> None:
        """Remove entries that are expired and unused for longer than evict_time."""
        now = self._now()
        evict = int(self.evict_time)
        with self._lock:
            stale = [
                key
                for key, item in self._items.items()
                if item.expiration < now and item.last_used + evict < now
            ]
            for key in stale:
                del self._items[key]

    def _run_timer(self) -> None:
        while not self._stop.wait(self.cleanup_time):
            self.clear_cache()

    def stop_cache_timer(self) -> None:
        """Stop the background cleanup thread, if any."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def __enter__(self) -> SimpleTimeCache:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop_cache_timer()