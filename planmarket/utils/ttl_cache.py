from __future__ import annotations

import time
from dataclasses import dataclass
from threading import RLock
from typing import Dict, Generic, Optional, TypeVar


K = TypeVar('K')
V = TypeVar('V')


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[K, V]):
    """Small in-process TTL cache.

    - Lost on restart (holds transient per-session state only)
    - Thread-safe
    - ``sliding=True`` pushes the expiry back on every read
    """

    def __init__(self, ttl_seconds: int = 60, max_items: int = 2048, sliding: bool = False):
        self._ttl = max(1, int(ttl_seconds))
        self._max = max(64, int(max_items))
        self._sliding = sliding
        self._data: Dict[K, _Entry[V]] = {}
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            self._prune_locked()
            return len(self._data)

    def get(self, key: K) -> Optional[V]:
        now = time.monotonic()
        with self._lock:
            entry = self._data.get(key)
            if not entry:
                return None
            if entry.expires_at <= now:
                self._data.pop(key, None)
                return None
            if self._sliding:
                entry.expires_at = now + self._ttl
            return entry.value

    def set(self, key: K, value: V) -> None:
        expires_at = time.monotonic() + self._ttl
        with self._lock:
            if key not in self._data and len(self._data) >= self._max:
                # drop expired, then the oldest insertion
                self._prune_locked()
                if len(self._data) >= self._max:
                    try:
                        first = next(iter(self._data))
                        self._data.pop(first, None)
                    except StopIteration:
                        pass
            self._data[key] = _Entry(value=value, expires_at=expires_at)

    def pop(self, key: K) -> Optional[V]:
        with self._lock:
            entry = self._data.pop(key, None)
            return entry.value if entry else None

    def _prune_locked(self) -> None:
        now = time.monotonic()
        expired = [k for k, v in self._data.items() if v.expires_at <= now]
        for k in expired:
            self._data.pop(k, None)
