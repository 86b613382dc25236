"""Tokenization and query-projection engine.

An Engine owns one structural backend (possibly none), its compiled queries
and its result caches. Construct it once and pass it to whatever needs it::

    engine = Engine.create(EngineOptions(language="python"))
    result = engine.highlight(source)
    if result.outcome is Outcome.LEXICAL:
        ...  # structural analysis unavailable, fallback scanner used

Failures never escape the public operations: they are reported through
``Result.outcome`` and ``Result.reason``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeVar

from linetok.adapter import project, project_line_tokens, to_folds, to_symbols, to_tags
from linetok.cache import DEFAULT_CAPACITY, LRUCache, QueryCache
from linetok.errors import BackendUnavailable, QueryError
from linetok.lexer import tokenize
from linetok.lines import LineIndex, LineTokens, by_line
from linetok.merge import basic_tokens, fill, merge
from linetok.structural import StructuralBackend, TreeSitterBackend, load_query_source
from linetok.tokens import (
    CaptureMatch,
    Fold,
    LineToken,
    Provenance,
    Symbol,
    Tag,
    Token,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Outcome(Enum):
    STRUCTURAL = "structural"  # produced from the structural parser
    LEXICAL = "lexical"  # fallback scanner output
    EMPTY = "empty"  # no result available


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Items plus how they were obtained; *reason* explains any degradation."""

    items: tuple[T, ...]
    outcome: Outcome
    reason: str | None = None

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class EngineOptions:
    language: str = "python"
    cache_size: int | None = DEFAULT_CAPACITY
    query_paths: list[Path] = field(default_factory=list)
    structural: bool = True


class Engine:
    """Entry point for tokenization, line projection and structural queries."""

    def __init__(
        self,
        backend: StructuralBackend | None = None,
        *,
        query_paths: Iterable[Path] = (),
        cache_size: int | None = DEFAULT_CAPACITY,
        unavailable_reason: str | None = None,
    ) -> None:
        self._backend = backend
        self._query_paths = [Path(p) for p in query_paths]
        self._unavailable_reason = unavailable_reason or (
            None if backend is not None else "no structural backend configured"
        )
        self._queries = QueryCache(self._load_query, self._compile_query)
        self._broken_queries: dict[str, str] = {}
        self._token_cache: LRUCache[str, Result[Token]] = LRUCache(cache_size)
        self._symbol_cache: LRUCache[str, Result[Symbol]] = LRUCache(cache_size)
        self._fold_cache: LRUCache[str, Result[Fold]] = LRUCache(cache_size)
        self._tag_cache: LRUCache[str, Result[Tag]] = LRUCache(cache_size)

    @classmethod
    def create(cls, options: EngineOptions | None = None) -> Engine:
        """Build an engine with the tree-sitter backend for *options.language*.

        When the backend cannot be initialised the engine is returned in
        degraded mode for its whole lifetime; build a new one to retry.
        """
        if options is None:
            options = EngineOptions()
        kwargs: dict[str, Any] = {
            "query_paths": options.query_paths,
            "cache_size": options.cache_size,
        }
        if not options.structural:
            return cls(None, unavailable_reason="structural analysis disabled", **kwargs)

        try:
            backend = TreeSitterBackend(options.language)
        except BackendUnavailable as exc:
            logger.warning("%s; using the lexical scanner only", exc)
            return cls(None, unavailable_reason=str(exc), **kwargs)
        return cls(backend, **kwargs)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def degraded(self) -> bool:
        """True when no structural backend is available."""
        return self._backend is None

    @property
    def language(self) -> str | None:
        return self._backend.language if self._backend is not None else None

    @property
    def token_cache(self) -> LRUCache[str, Result[Token]]:
        return self._token_cache

    def clear_cache(self) -> None:
        """Drop every cached result (compiled queries are kept)."""
        self._token_cache.clear()
        self._symbol_cache.clear()
        self._fold_cache.clear()
        self._tag_cache.clear()

    def dispose(self) -> None:
        """Release compiled queries and cached results."""
        self._queries.dispose()
        self._broken_queries.clear()
        self.clear_cache()

    # ------------------------------------------------------------------
    # Lexical
    # ------------------------------------------------------------------

    def tokenize(self, text: str) -> list[Token]:
        """Lexical-only tokenization."""
        return tokenize(text)

    # ------------------------------------------------------------------
    # Structural plumbing
    # ------------------------------------------------------------------

    def parse(self, text: str) -> Any | None:
        """Parse *text* with the structural backend; None when unavailable or failed."""
        if self._backend is None:
            return None
        return self._backend.parse(text)

    def _load_query(self, name: str) -> str | None:
        assert self._backend is not None
        return load_query_source(self._backend.language, name, self._query_paths)

    def _compile_query(self, name: str, text: str) -> Any:
        assert self._backend is not None
        return self._backend.compile(name, text)

    def _run_query(self, name: str, tree: Any, text: str) -> tuple[list[CaptureMatch] | None, str | None]:
        """Execute query *name*; returns (matches, None) or (None, reason)."""
        if self._backend is None:
            return None, self._unavailable_reason
        if tree is None:
            return None, "source could not be parsed"
        if name in self._broken_queries:
            return None, self._broken_queries[name]
        try:
            query = self._queries.get_or_compile(name)
        except QueryError as exc:
            logger.warning("query %r failed to compile:\n%s", name, exc.format())
            reason = f"query {name!r} failed to compile: {exc.message}"
            self._broken_queries[name] = reason
            return None, reason
        if query is None:
            return None, f"query {name!r} not found"
        return self._backend.execute(tree, query, text), None

    def _structural(
        self,
        name: str,
        text: str,
        cache: LRUCache[str, Result[T]],
        build: Callable[[list[CaptureMatch], str], Sequence[T]],
    ) -> Result[T]:
        def compute() -> Result[T]:
            matches, reason = self._run_query(name, self.parse(text), text)
            if matches is None:
                return Result((), Outcome.EMPTY, reason)
            return Result(tuple(build(matches, text)), Outcome.STRUCTURAL)

        return cache.get_or_compute(text, compute)

    # ------------------------------------------------------------------
    # Highlighting
    # ------------------------------------------------------------------

    def highlight(self, text: str) -> Result[Token]:
        """Best-effort full-coverage tokens: structural when possible, else lexical."""
        def compute() -> Result[Token]:
            matches, reason = self._run_query("highlights", self.parse(text), text)
            if matches is None:
                return Result(tuple(tokenize(text)), Outcome.LEXICAL, reason)
            return Result(tuple(fill(project(matches, text), text)), Outcome.STRUCTURAL)

        return self._token_cache.get_or_compute(text, compute)

    # ------------------------------------------------------------------
    # Line projection
    # ------------------------------------------------------------------

    def tokens_by_line(self, tree: Any, text: str) -> LineTokens:
        """Highlight and tag tokens of *tree*, bucketed by line.

        Without a tree (or backend) the lexical scanner's tokens are bucketed
        instead, as ``highlight`` provenance with the kind as capture name.
        """
        index = LineIndex(text)
        tokens: list[LineToken] = []

        highlights, reason = self._run_query("highlights", tree, text)
        if highlights is not None:
            tokens.extend(project_line_tokens(highlights, text, Provenance.HIGHLIGHT, index))
            outcome = Outcome.STRUCTURAL
        else:
            logger.debug("line tokens fall back to the lexical scanner: %s", reason)
            tokens.extend(
                LineToken(
                    t.kind, t.start, t.end, t.text, index.line_of(t.start), Provenance.HIGHLIGHT, t.kind.value
                )
                for t in tokenize(text)
            )
            outcome = Outcome.LEXICAL

        tags, _ = self._run_query("tags", tree, text)
        if tags is not None:
            tokens.extend(project_line_tokens(tags, text, Provenance.TAG, index))

        return LineTokens(by_line(tokens, text, index), outcome)

    def tokens_for_line(self, tree: Any, text: str, line: int) -> list[LineToken]:
        return self.tokens_by_line(tree, text).line(line)

    def highlights_for_line(self, tree: Any, text: str, line: int) -> list[LineToken]:
        return self.tokens_by_line(tree, text).of_type(Provenance.HIGHLIGHT, line)

    def tags_for_line(self, tree: Any, text: str, line: int) -> list[LineToken]:
        return self.tokens_by_line(tree, text).of_type(Provenance.TAG, line)

    def tokens_in_line_range(self, tree: Any, text: str, start_line: int, end_line: int) -> list[LineToken]:
        return self.tokens_by_line(tree, text).in_range(start_line, end_line)

    def basic_tokens(self, text: str, line: int) -> list[LineToken]:
        return basic_tokens(text, line)

    def all_line_tokens(self, tree: Any, text: str, line: int) -> list[LineToken]:
        """Structural tokens of *line* plus the basic words they do not cover."""
        return merge(self.tokens_for_line(tree, text, line), basic_tokens(text, line))

    # ------------------------------------------------------------------
    # Symbols / folds / tags
    # ------------------------------------------------------------------

    def symbols(self, text: str) -> Result[Symbol]:
        return self._structural("locals", text, self._symbol_cache, to_symbols)

    def folds(self, text: str) -> Result[Fold]:
        return self._structural("folds", text, self._fold_cache, to_folds)

    def tags(self, text: str) -> Result[Tag]:
        return self._structural("tags", text, self._tag_cache, to_tags)

    def resolve_symbol(self, tree: Any, symbol: Symbol) -> Any | None:
        """Return the node of *tree* that *symbol* names.

        *tree* may be any parse of the text the symbol was taken from.
        """
        if self._backend is None or tree is None or symbol.node is None:
            return None
        return self._backend.resolve(tree, symbol.node)
