"""Thread-safe in-memory cache for artist lookups."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from threading import Lock
from time import monotonic
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from . import config

_MISSING = object()


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float  # 0.0 means no expiry

    def expired(self, now: float) -> bool:
        return bool(self.expires_at) and self.expires_at < now


class InMemoryCache:
    """Key/value store partitioned by the names in ``config.CACHE_NAMESPACES``.

    Genre lookups run on worker threads, so every access takes the lock.
    Empty values (an artist with no genres) are cached like any other.
    """

    def __init__(self, default_ttl: Optional[float] = config.CACHE_DEFAULT_TTL_SECONDS) -> None:
        self.default_ttl = default_ttl
        self.stats: Counter = Counter()
        self._lock = Lock()
        self._entries: Dict[Tuple[str, Hashable], _CacheEntry] = {}

    def get(self, namespace: str, key: Hashable, default: Any = None) -> Any:
        slot = (_checked(namespace), key)
        with self._lock:
            entry = self._entries.get(slot)
            if entry is not None and entry.expired(monotonic()):
                del self._entries[slot]
                entry = None
            self.stats["miss" if entry is None else "hit"] += 1
            return default if entry is None else entry.value

    def set(self, namespace: str, key: Hashable, value: Any, ttl_seconds: Any = _MISSING) -> None:
        ttl = self.default_ttl if ttl_seconds is _MISSING else ttl_seconds
        now = monotonic()
        entry = _CacheEntry(value=value, expires_at=now + ttl if ttl else 0.0)
        with self._lock:
            self._evict_expired(now)
            self._entries[(_checked(namespace), key)] = entry

    def get_or_set(
        self,
        namespace: str,
        key: Hashable,
        factory: Callable[[], Any],
        ttl_seconds: Any = _MISSING,
    ) -> Any:
        cached = self.get(namespace, key, _MISSING)
        if cached is not _MISSING:
            return cached
        value = factory()
        self.set(namespace, key, value, ttl_seconds)
        return value

    def invalidate(self, namespace: str) -> int:
        """Drop every entry in ``namespace`` and return how many were removed."""

        namespace = _checked(namespace)
        with self._lock:
            doomed = [slot for slot in self._entries if slot[0] == namespace]
            for slot in doomed:
                del self._entries[slot]
        return len(doomed)

    def _evict_expired(self, now: float) -> None:
        # Caller holds the lock
        for slot in [slot for slot, entry in self._entries.items() if entry.expired(now)]:
            del self._entries[slot]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.stats.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def build_cache_key(*parts: Hashable) -> str:
    return "::".join(str(part) for part in parts)


def _checked(namespace: str) -> str:
    if namespace not in config.CACHE_NAMESPACES:
        raise KeyError(f"Unknown cache namespace: {namespace!r}")
    return config.CACHE_NAMESPACES[namespace]
