from __future__ import annotations

import copy
import time
from threading import Lock
from typing import Any, Callable


class ResponseCache:
    """In-memory TTL cache for upstream payloads.

    Values are deep-copied on the way in and out so callers never share a
    payload with the cache or with each other.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = Lock()

    def get(self, key: str) -> Any | None:
        now = self._clock()
        with self._lock:
            row = self._entries.get(key)
            if row is None:
                return None
            expires_at, value = row
            if expires_at <= now:
                self._entries.pop(key, None)
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, *, ttl_seconds: float) -> None:
        ttl = max(1.0, float(ttl_seconds))
        now = self._clock()
        with self._lock:
            for stale in [row_key for row_key, (expires_at, _) in self._entries.items() if expires_at <= now]:
                del self._entries[stale]
            self._entries[key] = (now + ttl, copy.deepcopy(value))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
