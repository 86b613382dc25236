"""Test the LRU result cache and the compiled-query cache."""

import pytest

from linetok.cache import LRUCache, QueryCache
from linetok.errors import QueryError


class TestLRUCache:
    def test_get_put(self):
        cache: LRUCache[str, int] = LRUCache(4)
        assert cache.get("a") is None
        cache.put("a", 1)
        assert cache.get("a") == 1
        assert "a" in cache
        assert len(cache) == 1

    def test_eviction_order(self):
        cache: LRUCache[str, int] = LRUCache(2)
        cache.put("a", 1)
        cache.put("b", 2)
        cache.get("a")  # b is now least recently used
        cache.put("c", 3)
        assert "b" not in cache
        assert "a" in cache and "c" in cache
        assert cache.stats.evictions == 1

    def test_unbounded(self):
        cache: LRUCache[int, int] = LRUCache(None)
        for i in range(1000):
            cache.put(i, i)
        assert len(cache) == 1000
        assert cache.stats.evictions == 0

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            LRUCache(0)

    def test_get_or_compute(self):
        cache: LRUCache[str, int] = LRUCache(4)
        calls = []

        def compute() -> int:
            calls.append(1)
            return 7

        assert cache.get_or_compute("k", compute) == 7
        assert cache.get_or_compute("k", compute) == 7
        assert len(calls) == 1
        assert (cache.stats.hits, cache.stats.misses) == (1, 1)

    def test_keys_are_exact_text(self):
        cache: LRUCache[str, int] = LRUCache(4)
        cache.put("x = 1", 1)
        assert cache.get("x = 1 ") is None
        assert cache.get("x  = 1") is None

    def test_clear(self):
        cache: LRUCache[str, int] = LRUCache(4)
        cache.put("a", 1)
        cache.clear()
        assert len(cache) == 0


class TestQueryCache:
    def _cache(self, sources: dict[str, str], compiled: list[str]) -> QueryCache:
        def compiler(name: str, text: str) -> str:
            compiled.append(name)
            if text == "bad":
                raise QueryError("syntax error", name, text, 0)
            return f"<{name}>"

        return QueryCache(sources.get, compiler)

    def test_compiles_once(self):
        compiled: list[str] = []
        cache = self._cache({"highlights": "(x) @y"}, compiled)
        assert cache.get_or_compile("highlights") == "<highlights>"
        assert cache.get_or_compile("highlights") == "<highlights>"
        assert compiled == ["highlights"]

    def test_absent_resource_cached_as_none(self):
        lookups: list[str] = []

        def loader(name: str) -> str | None:
            lookups.append(name)
            return None

        cache = QueryCache(loader, lambda name, text: text)
        assert cache.get_or_compile("folds") is None
        assert cache.get_or_compile("folds") is None
        assert lookups == ["folds"]
        assert "folds" in cache

    def test_compile_error_propagates(self):
        cache = self._cache({"tags": "bad"}, [])
        with pytest.raises(QueryError):
            cache.get_or_compile("tags")
        assert "tags" not in cache

    def test_dispose(self):
        compiled: list[str] = []
        cache = self._cache({"locals": "(x) @y"}, compiled)
        cache.get_or_compile("locals")
        cache.dispose()
        cache.get_or_compile("locals")
        assert compiled == ["locals", "locals"]
