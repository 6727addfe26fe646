"""Process-local lookup cache.

Timestamped entries with a fixed TTL (24h by default). Growth is
unbounded: there is no size limit and no background eviction, an expired
entry is only dropped when it is read.
"""

from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60


@dataclass
class CacheEntry:
    """A cached value with its insertion time."""

    value: Any
    timestamp: float


class TTLCache:
    """Dictionary cache whose entries expire after ``ttl_seconds``."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(*parts: Any) -> str:
        """Build a stable key from request parameters.

        None and empty values are normalised so that omitted and blank
        fields share an entry; strings are case-folded.
        """
        normalised = []
        for part in parts:
            if part is None:
                normalised.append("")
            elif isinstance(part, str):
                normalised.append(part.strip().lower())
            else:
                normalised.append(part)
        return json.dumps(normalised, sort_keys=True, default=str)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.timestamp > self.ttl_seconds:
                del self._entries[key]
                logger.debug("cache_expired", key=key)
                return None
            return entry.value

    def set(self, key: str, value: Any) -> None:
        """Store a value stamped with the current time."""
        with self._lock:
            self._entries[key] = CacheEntry(value=value, timestamp=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
