"""
Versioned response cache.

Holds the last known response per fetch key. The store never expires entries
on its own: each reader supplies the freshness window it cares about, so live
data can use a short window and reference data a long one over the same store.
"""

import time
from typing import Any, Callable, Optional

import structlog

from src.sports.models.schemas import CacheEntry

logger = structlog.get_logger()


def _now_ms() -> int:
    return int(time.time() * 1000)


class CacheStore:
    """
    Process-wide key/value store of CacheEntry records.

    Keys are namespaced by a format version so a version bump invalidates
    every payload written by older code. Mutations are plain dict assignments;
    under a single event loop the last writer wins.
    """

    def __init__(self, version: str = "v4", clock: Optional[Callable[[], int]] = None):
        self.version = version
        self._clock = clock or _now_ms
        self._entries: dict[str, CacheEntry] = {}
        self.logger = logger.bind(component="cache", version=version)

    def namespaced(self, key: str) -> str:
        return f"{key}_{self.version}"

    def now_ms(self) -> int:
        return self._clock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Get the entry for a key, fresh or stale."""
        return self._entries.get(self.namespaced(key))

    def set(self, key: str, data: Any, success: bool = True) -> CacheEntry:
        """Store a payload for a key, stamped with the current time."""
        entry = CacheEntry(key=key, data=data, timestamp_ms=self.now_ms(), success=success)
        self._entries[self.namespaced(key)] = entry
        return entry

    def clear(self, key: Optional[str] = None) -> None:
        """Clear one key, or every entry when no key is given."""
        if key is None:
            self.logger.info("Cache cleared", entries=len(self._entries))
            self._entries.clear()
        else:
            self._entries.pop(self.namespaced(key), None)

    def get_fresh(self, key: str, freshness_window_ms: float) -> Optional[CacheEntry]:
        """Get a successful entry younger than the window, else None."""
        entry = self.get(key)
        if entry and entry.success and entry.is_fresh(self.now_ms(), freshness_window_ms):
            return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.namespaced(key) in self._entries
