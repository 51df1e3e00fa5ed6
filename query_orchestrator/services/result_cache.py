"""
Short-lived in-memory memo of normalized query -> result list.

Entries are evicted lazily: an entry older than the TTL is dropped the first
time it is read.  The TTL is read on every lookup so that runtime
reconfiguration takes effect for entries that are already stored.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple

import structlog

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class CacheEntry:
    timestamp: float
    result: Any


class ResultCache:
    """Per-orchestrator TTL cache keyed by normalized query."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self.hit_count = 0
        self.miss_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, query: str) -> bool:
        return query in self._entries

    def lookup(self, query: str, ttl_seconds: float) -> Tuple[bool, Any]:
        """Return ``(hit, result)``; a stored ``None`` is still a hit."""
        entry = self._entries.get(query)
        if entry is None:
            self.miss_count += 1
            return False, None

        if self._clock() - entry.timestamp > ttl_seconds:
            del self._entries[query]
            self.miss_count += 1
            logger.debug("result_cache.expired", query=query[:50])
            return False, None

        self.hit_count += 1
        return True, entry.result

    def set(self, query: str, result: Any) -> None:
        self._entries[query] = CacheEntry(timestamp=self._clock(), result=result)

    def clear(self) -> None:
        self._entries.clear()

    def get_stats(self) -> Dict[str, Any]:
        total = self.hit_count + self.miss_count
        return {
            "size": len(self._entries),
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "hit_rate": (self.hit_count / total) if total else 0.0,
        }
