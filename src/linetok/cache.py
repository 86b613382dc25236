"""Compiled-query and result caches owned by one engine.

Result caches are content-addressed: the key is the exact source text, so
any edit (whitespace included) is a miss. Capacity is bounded with LRU
eviction unless constructed with ``capacity=None``.

Thread Safety:
    Neither cache is thread-safe. Callers sharing an engine across threads
    must serialise access themselves (e.g. a threading.Lock around calls).
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_CAPACITY = 128


@dataclass(slots=True)
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0


class LRUCache(Generic[K, V]):
    """Mapping with least-recently-used eviction."""

    __slots__ = ("_data", "capacity", "stats")

    def __init__(self, capacity: int | None = DEFAULT_CAPACITY) -> None:
        if capacity is not None and capacity < 1:
            raise ValueError(f"cache capacity must be positive or None, got {capacity}")
        self._data: OrderedDict[K, V] = OrderedDict()
        self.capacity = capacity
        self.stats = CacheStats()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def get(self, key: K) -> V | None:
        """Return the cached value (marking it recently used), else None."""
        try:
            value = self._data[key]
        except KeyError:
            self.stats.misses += 1
            return None
        self._data.move_to_end(key)
        self.stats.hits += 1
        return value

    def put(self, key: K, value: V) -> None:
        self._data[key] = value
        self._data.move_to_end(key)
        if self.capacity is not None:
            while len(self._data) > self.capacity:
                self._data.popitem(last=False)
                self.stats.evictions += 1

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        if key in self._data:
            self.stats.hits += 1
            self._data.move_to_end(key)
            return self._data[key]
        self.stats.misses += 1
        value = compute()
        self.put(key, value)
        return value

    def clear(self) -> None:
        self._data.clear()


class QueryCache:
    """Compiles each named query at most once.

    *loader* returns the query text for a name, or None when the resource
    does not exist; *compiler* turns text into a compiled query and may
    raise. Absence is cached too, so a missing resource is looked up once.
    Compile errors are not cached and propagate to the caller.
    """

    __slots__ = ("_compiled", "_loader", "_compiler")

    def __init__(
        self,
        loader: Callable[[str], str | None],
        compiler: Callable[[str, str], Any],
    ) -> None:
        self._loader = loader
        self._compiler = compiler
        self._compiled: dict[str, Any] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._compiled

    def get_or_compile(self, name: str) -> Any | None:
        if name in self._compiled:
            return self._compiled[name]

        text = self._loader(name)
        if text is None:
            logger.debug("query resource %r not found", name)
            self._compiled[name] = None
            return None

        query = self._compiler(name, text)
        self._compiled[name] = query
        return query

    def dispose(self) -> None:
        self._compiled.clear()
