"""Shared test fixtures and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from linetok.engine import Engine
from linetok.errors import QueryError
from linetok.tokens import CaptureMatch, NodeRef, Token, TokenKind


@dataclass
class FakeTree:
    source: str


@dataclass
class FakeBackend:
    """Scripted StructuralBackend: returns canned captures per query name."""

    captures: dict[str, list[CaptureMatch]] = field(default_factory=dict)
    language: str = "python"
    parse_fails: bool = False
    broken: frozenset[str] = frozenset()
    parse_calls: int = 0
    trees: list[FakeTree] = field(default_factory=list)
    compiled: list[str] = field(default_factory=list)
    executed: list[str] = field(default_factory=list)

    def parse(self, source: str) -> FakeTree | None:
        self.parse_calls += 1
        if self.parse_fails:
            return None
        tree = FakeTree(source)
        self.trees.append(tree)
        return tree

    def compile(self, name: str, text: str) -> Any:
        self.compiled.append(name)
        if name in self.broken:
            raise QueryError("invalid node type", name, text, 0)
        return name

    def execute(self, tree: Any, query: Any, source: str) -> list[CaptureMatch]:
        self.executed.append(query)
        return list(self.captures.get(query, []))

    def resolve(self, tree: Any, ref: NodeRef) -> Any | None:
        # Only trees this backend parsed hold nodes.
        if not any(tree is t for t in self.trees):
            return None
        data = tree.source.encode("utf-8", "surrogatepass")
        if ref.end_byte > len(data):
            return None
        return ("node", ref.type, data[ref.start_byte : ref.end_byte].decode("utf-8", "surrogatepass"))


def capture(source: str, needle: str, name: str, occurrence: int = 0, node_type: str | None = None) -> CaptureMatch:
    """Build a CaptureMatch (UTF-8 byte offsets) for the n-th *needle* in *source*."""
    pos = -1
    for _ in range(occurrence + 1):
        pos = source.index(needle, pos + 1)
    start = len(source[:pos].encode("utf-8", "surrogatepass"))
    end = start + len(needle.encode("utf-8", "surrogatepass"))
    return CaptureMatch(start, end, name, node_type)


@pytest.fixture
def fake_engine():
    """Return a helper building an Engine over a FakeBackend."""

    def _make(captures: dict[str, list[CaptureMatch]] | None = None, **kwargs: Any) -> tuple[Engine, FakeBackend]:
        cache_size = kwargs.pop("cache_size", 128)
        backend = FakeBackend(captures or {}, **kwargs)
        return Engine(backend, cache_size=cache_size), backend

    return _make


def assert_kinds(tokens: list[Token], expected: list[TokenKind]) -> None:
    """Assert that the token kinds match the expected list."""
    actual = [t.kind for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_texts(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token texts match the expected list."""
    actual = [t.text for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_partition(tokens: list[Token], source: str) -> None:
    """Assert that tokens are contiguous, non-overlapping and cover *source*."""
    pos = 0
    for t in tokens:
        assert t.start == pos, f"gap or overlap at {pos}: {t}"
        assert t.end > t.start, f"empty token {t}"
        assert t.text == source[t.start : t.end]
        pos = t.end
    assert pos == len(source)
