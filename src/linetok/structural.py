"""Structural parser seam: parse source, compile queries, run them.

The engine only depends on the StructuralBackend protocol. TreeSitterBackend
is the bundled implementation on top of py-tree-sitter and the
``tree-sitter-<language>`` grammar packages.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable
from importlib import resources
from pathlib import Path
from typing import Any, Protocol

import tree_sitter
from tree_sitter import Query as _TSQuery
from tree_sitter import QueryCursor as _TSQueryCursor

from linetok.errors import BackendUnavailable, QueryError
from linetok.tokens import CaptureMatch, NodeRef

logger = logging.getLogger(__name__)

QUERY_NAMES = ("highlights", "locals", "folds", "tags")


class StructuralBackend(Protocol):
    """What the engine needs from a structural parser."""

    language: str

    def parse(self, source: str) -> Any | None:
        """Return a syntax tree, or None when the source cannot be parsed."""
        ...

    def compile(self, name: str, text: str) -> Any:
        """Compile query *text*. Raises QueryError on invalid queries."""
        ...

    def execute(self, tree: Any, query: Any, source: str) -> list[CaptureMatch]:
        """Run a compiled query over *tree* and return its captures."""
        ...

    def resolve(self, tree: Any, ref: NodeRef) -> Any | None:
        """Look up the node a NodeRef was taken from, if still present."""
        ...


def load_query_source(language: str, name: str, search_paths: Iterable[Path] = ()) -> str | None:
    """Find ``<name>.scm`` for *language*.

    Each search path is tried as ``<dir>/<language>/<name>.scm`` and then
    ``<dir>/<name>.scm``; the bundled package queries come last. Returns
    None when no resource exists.
    """
    for d in search_paths:
        for candidate in (d / language / f"{name}.scm", d / f"{name}.scm"):
            if candidate.is_file():
                return candidate.read_text(encoding="utf-8")

    bundled = resources.files("linetok") / "queries" / language / f"{name}.scm"
    if bundled.is_file():
        return bundled.read_text(encoding="utf-8")
    return None


class TreeSitterBackend:
    """StructuralBackend over py-tree-sitter.

    Usage::

        backend = TreeSitterBackend("python")
        tree = backend.parse(source)
        query = backend.compile("highlights", text)
        matches = backend.execute(tree, query, source)
    """

    def __init__(self, language: str = "python") -> None:
        self.language = language
        self._ts_language = _load_language(language)
        self._parser = tree_sitter.Parser(self._ts_language)

    def parse(self, source: str) -> Any | None:
        try:
            return self._parser.parse(source.encode("utf-8", "surrogatepass"))
        except ValueError:
            logger.warning("tree-sitter failed to parse %d chars", len(source), exc_info=True)
            return None

    def compile(self, name: str, text: str) -> Any:
        try:
            return _TSQuery(self._ts_language, text)
        except Exception as exc:
            raise QueryError(str(exc), name, text, getattr(exc, "offset", None)) from exc

    def execute(self, tree: Any, query: Any, source: str) -> list[CaptureMatch]:
        cursor = _TSQueryCursor(query)
        captures: dict[str, list[Any]] = cursor.captures(tree.root_node)
        return [
            CaptureMatch(node.start_byte, node.end_byte, capture_name, node.type)
            for capture_name, nodes in captures.items()
            for node in nodes
        ]

    def resolve(self, tree: Any, ref: NodeRef) -> Any | None:
        node = tree.root_node.descendant_for_byte_range(ref.start_byte, ref.end_byte)
        # Several nested nodes can share one byte range; walk outwards.
        while node is not None and node.start_byte == ref.start_byte and node.end_byte == ref.end_byte:
            if node.type == ref.type:
                return node
            node = node.parent
        return None


def _load_language(language: str) -> Any:
    module_name = f"tree_sitter_{language.replace('-', '_')}"
    try:
        module = importlib.import_module(module_name)
    except ImportError as err:
        raise BackendUnavailable(language, f"grammar package {module_name!r} not installed") from err
    try:
        return tree_sitter.Language(module.language())
    except (AttributeError, ValueError) as err:
        raise BackendUnavailable(language, f"cannot load grammar from {module_name!r}") from err
