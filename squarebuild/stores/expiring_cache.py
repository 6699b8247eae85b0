"""Short-lived cache for values memoized during a single build."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

_DEFAULT_TTL = 180.0


@dataclass
class CacheEntry:
    key: str
    value: Any
    expiry: float


class ExpiringCache:
    """Stores values for a fixed time-to-live while the cache is running.

    The cache is started at the beginning of a build and stopped at its end.
    Stopping drops every entry, so nothing memoized by one build is visible to
    the next one. While stopped, ``set`` hands the value back without storing it.
    """

    def __init__(
        self, ttl: float = _DEFAULT_TTL, *, clock: Callable[[], float] | None = None
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self._ttl = float(ttl)
        self._clock = clock or time.monotonic
        self._entries: Dict[str, CacheEntry] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def ttl(self) -> float:
        return self._ttl

    def start(self) -> None:
        self._entries.clear()
        self._running = True

    def stop(self) -> None:
        self._entries.clear()
        self._running = False

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        entry = self._live_entry(key)
        if entry is None:
            return default
        return entry.value

    def set(self, key: str, value: Any) -> Any:
        if self._running:
            self._entries[key] = CacheEntry(key=key, value=value, expiry=self._clock() + self._ttl)
        return value

    def has(self, key: str) -> bool:
        return self._live_entry(key) is not None

    def remove(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __len__(self) -> int:
        self._purge()
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers

    def _live_entry(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expiry <= self._clock():
            self._entries.pop(key, None)
            return None
        return entry

    def _purge(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expiry <= now]
        for key in expired:
            self._entries.pop(key, None)


__all__ = ["CacheEntry", "ExpiringCache"]
