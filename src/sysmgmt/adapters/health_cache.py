"""In-process unhealthy-API cache with per-entry TTL."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from sysmgmt.interfaces.health_cache import UnhealthyApiCache


class InMemoryUnhealthyApiCache(UnhealthyApiCache):
    """Dict-backed cache; entries expire lazily on read.

    Args:
        clock: Monotonic seconds source. Inject a fake in tests to move time.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, Mapping[str, Any]]] = {}

    def mark_unhealthy(self, api_id: str, snapshot: Mapping[str, Any], ttl_s: int) -> None:
        if ttl_s <= 0:
            raise ValueError("ttl_s must be > 0")
        expires_at = self._clock() + ttl_s
        with self._lock:
            self._entries[api_id] = (expires_at, MappingProxyType(dict(snapshot)))

    def clear(self, api_id: str) -> bool:
        with self._lock:
            entry = self._entries.pop(api_id, None)
        return entry is not None and entry[0] > self._clock()

    def is_unhealthy(self, api_id: str) -> bool:
        return self.snapshot(api_id) is not None

    def snapshot(self, api_id: str) -> Mapping[str, Any] | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(api_id)
            if entry is None:
                return None
            if entry[0] <= now:
                del self._entries[api_id]
                return None
            return entry[1]

    def ttl_remaining(self, api_id: str) -> float | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(api_id)
            if entry is None or entry[0] <= now:
                return None
            return entry[0] - now

    def unhealthy_ids(self) -> list[str]:
        now = self._clock()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
            return sorted(self._entries)
