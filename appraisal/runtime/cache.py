"""In-memory LRU cache for deterministic calculation results."""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar

V = TypeVar("V")


class ResultCache(Generic[V]):
    """Least-recently-used cache whose entries expire ``ttl`` seconds after insertion."""

    def __init__(self, max_size: int = 50, ttl: float = 300.0, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, V]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def enabled(self) -> bool:
        return self.max_size > 0

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: V) -> None:
        if not self.enabled:
            return
        self._entries[key] = (self._clock(), value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()


def cache_key(kind: Any, parameters: Any) -> str:
    """Canonical key for a typed parameter record."""
    return f"{getattr(kind, 'value', kind)}:{parameters.model_dump_json()}"


__all__ = ["ResultCache", "cache_key"]
