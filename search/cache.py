"""
In-memory cache of final search results, keyed by the serialized query.
"""

import time
from typing import Any, Callable


class QueryCache:
    """
    Time-based cache. An entry is served while younger than `ttl` seconds; expired entries
    stay until overwritten (or until `max_entries` pushes them out, oldest first).
    The clock is injectable so tests can move time forward.
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic, max_entries: int | None = None):
        self.ttl = ttl
        self.clock = clock
        self.max_entries = max_entries
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str):
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self.clock() - stored_at >= self.ttl:
            return None
        return value

    def set(self, key: str, value) -> None:
        self._entries.pop(key, None)
        self._entries[key] = (self.clock(), value)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                del self._entries[next(iter(self._entries))]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
