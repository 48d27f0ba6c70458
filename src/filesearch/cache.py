"""Time-bounded response cache owned by the HTTP surface."""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Tuple


class TTLCache:
    """Key/value cache whose entries expire after ``ttl_seconds``.

    Entries are a convenience for listing endpoints and may be stale; callers
    invalidate by key prefix after mutations.
    """

    def __init__(self, ttl_seconds: float = 30.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self._ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def invalidate(self, prefix: str | None = None) -> None:
        if not prefix:
            self._entries.clear()
            return
        for key in [key for key in self._entries if key.startswith(prefix)]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
