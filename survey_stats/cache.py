"""
Time-bounded memoization cache for per-session results.

The cache is injected into whatever needs it (e.g. the hierarchical model
stores fitted individual parameters here) so lifetime and eviction are owned
by the caller rather than by module-level state.

Classes:
    Cache: Protocol with get/set/evict/clear
    TTLCache: In-memory implementation with per-entry expiry
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional, Protocol


class Cache(Protocol):
    def get(self, key: Hashable) -> Optional[Any]: ...

    def set(self, key: Hashable, value: Any) -> None: ...

    def evict(self, key: Hashable) -> bool: ...

    def clear(self) -> None: ...


@dataclass
class _Entry:
    value: Any
    expires_at: float


class TTLCache:
    """
    In-memory cache whose entries expire ``ttl_seconds`` after being set.

    Expired entries are dropped lazily on ``get`` and in bulk whenever the
    number of entries exceeds ``max_entries``. If a sweep still leaves the
    cache over capacity, the entries closest to expiry are evicted.

    Example usage:
        >>> cache = TTLCache(ttl_seconds=60.0)
        >>> cache.set("session-1", {"profile": [0.4, 0.3]})
        >>> cache.get("session-1")
        {'profile': [0.4, 0.3]}
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}")
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.ttl_seconds = float(ttl_seconds)
        self.max_entries = int(max_entries)
        self._clock = clock
        self._entries: Dict[Hashable, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _live_entry(self, key: Hashable) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is not None and self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def __contains__(self, key: Hashable) -> bool:
        return self._live_entry(key) is not None

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._live_entry(key)
        return None if entry is None else entry.value

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + self.ttl_seconds)
        if len(self._entries) > self.max_entries:
            self.sweep()
            overflow = len(self._entries) - self.max_entries
            if overflow > 0:
                oldest = sorted(self._entries, key=lambda k: self._entries[k].expires_at)[:overflow]
                for k in oldest:
                    del self._entries[k]

    def evict(self, key: Hashable) -> bool:
        """Remove ``key``; returns True if it was present."""
        return self._entries.pop(key, None) is not None

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        expired = [k for k, e in self._entries.items() if now >= e.expires_at]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
