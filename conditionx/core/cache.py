"""
ConditionX Result Cache

Bounded LRU cache for condition results.
Entries are keyed by (condition id, serialized variables, step index)
and evicted least-recently-used once capacity is reached.
"""

from __future__ import annotations
from typing import Dict, Any, Optional, Hashable
from collections import OrderedDict
from dataclasses import dataclass
import json
import logging

from ..schemas.context import WorkflowExecutionContext


logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cache counters."""
    size: int
    max_entries: int
    hits: int
    misses: int
    evictions: int

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "maxEntries": self.max_entries,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hitRate": self.hit_rate,
        }


def cache_key(condition_id: str, context: WorkflowExecutionContext) -> Optional[str]:
    """
    Build the cache key for a condition evaluated in a context.

    Returns None when the variables cannot be serialized (mixed key
    types, circular references); such evaluations are not cached.
    """
    try:
        variables = json.dumps(context.variables, sort_keys=True, default=str)
    except (TypeError, ValueError) as e:
        logger.debug(f"Variables not cacheable for {condition_id}: {e}")
        return None
    return f"{condition_id}_{variables}_{context.current_step_index}"


class ResultCache:
    """
    In-memory LRU cache.

    Read-mostly; a single event loop owns each engine instance.
    """

    def __init__(self, max_entries: int = 1024):
        self.max_entries = max(1, max_entries)
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> Optional[Any]:
        """Get a cached value and mark it most recently used."""
        if key in self._entries:
            self._entries.move_to_end(key)
            self._hits += 1
            return self._entries[key]
        self._misses += 1
        return None

    def set(self, key: Hashable, value: Any) -> None:
        """Store a value, evicting the least recently used entry if full."""
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Evicted cached condition result: {evicted}")

    def clear(self) -> None:
        """Clear all entries (counters are kept)."""
        self._entries.clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._entries),
            max_entries=self.max_entries,
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
        )
