"""Line indexing and line-bucketed token projection.

Newline offsets are computed once per source; each token's line is then a
binary search, so bucketing is O(n log n) in the number of tokens.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING, Protocol, TypeVar, overload

from linetok.tokens import LineToken, Position, Provenance

if TYPE_CHECKING:
    from linetok.engine import Outcome


class _Positioned(Protocol):
    @property
    def start(self) -> int: ...


T = TypeVar("T", bound=_Positioned)


class LineIndex:
    """Line-start offsets of a source text (lines split on ``\\n`` only)."""

    __slots__ = ("_source", "_starts")

    def __init__(self, source: str) -> None:
        self._source = source
        starts = [0]
        pos = source.find("\n")
        while pos != -1:
            starts.append(pos + 1)
            pos = source.find("\n", pos + 1)
        self._starts = starts

    @property
    def source(self) -> str:
        return self._source

    @property
    def line_count(self) -> int:
        """Number of lines: count of ``\\n`` plus one."""
        return len(self._starts)

    @property
    def line_starts(self) -> Sequence[int]:
        return tuple(self._starts)

    def line_of(self, offset: int) -> int:
        """Return the 0-based line containing character *offset*.

        Equal to the number of newlines in ``source[:offset]``. Offsets past
        the end map to the last line.
        """
        if offset <= 0:
            return 0
        return bisect_right(self._starts, offset) - 1

    def line_start(self, line: int) -> int:
        return self._starts[line]

    def line_end(self, line: int) -> int:
        """Offset just past the last character of *line*, newline excluded."""
        if line + 1 < len(self._starts):
            return self._starts[line + 1] - 1
        return len(self._source)

    def line_text(self, line: int) -> str:
        return self._source[self.line_start(line) : self.line_end(line)]

    def position(self, offset: int) -> Position:
        line = self.line_of(offset)
        return Position(line, offset - self._starts[line], offset)

    def offset(self, line: int, column: int) -> int:
        """Convert (line, column) to a character offset, clamped to the line."""
        if line < 0:
            return 0
        if line >= len(self._starts):
            return len(self._source)
        start = self._starts[line]
        return start + max(0, min(column, self.line_end(line) - start))

    def utf16_column(self, line: int, column: int) -> int:
        """Convert a character column on *line* to UTF-16 code units."""
        prefix = self._source[self._starts[line] : self._starts[line] + column]
        if prefix.isascii():
            return len(prefix)
        return len(prefix.encode("utf-16-le")) // 2


def by_line(tokens: Iterable[T], source: str, index: LineIndex | None = None) -> list[list[T]]:
    """Bucket *tokens* by the line their start offset falls on.

    One bucket per line. Tokens starting outside ``[0, len(source))`` are
    dropped. Within a bucket tokens are ordered by start; equal starts keep
    their input order.
    """
    if index is None:
        index = LineIndex(source)
    buckets: list[list[T]] = [[] for _ in range(index.line_count)]
    length = len(source)

    for token in tokens:
        if 0 <= token.start < length:
            buckets[index.line_of(token.start)].append(token)

    for bucket in buckets:
        bucket.sort(key=lambda t: t.start)
    return buckets


class LineTokens(Sequence[list[LineToken]]):
    """Line-indexed view over bucketed line tokens."""

    __slots__ = ("_buckets", "outcome")

    def __init__(self, buckets: list[list[LineToken]], outcome: Outcome) -> None:
        self._buckets = buckets
        self.outcome = outcome

    def __len__(self) -> int:
        return len(self._buckets)

    @overload
    def __getitem__(self, line: int) -> list[LineToken]: ...

    @overload
    def __getitem__(self, line: slice) -> list[list[LineToken]]: ...

    def __getitem__(self, line: int | slice) -> list[LineToken] | list[list[LineToken]]:
        return self._buckets[line]

    def __iter__(self) -> Iterator[list[LineToken]]:
        return iter(self._buckets)

    def __repr__(self) -> str:
        return f"LineTokens(lines={len(self._buckets)}, outcome={self.outcome.value})"

    def line(self, line: int) -> list[LineToken]:
        """Tokens on *line*; an out-of-range line has no tokens."""
        if 0 <= line < len(self._buckets):
            return list(self._buckets[line])
        return []

    def of_type(self, provenance: Provenance, line: int | None = None) -> list[LineToken]:
        """Tokens of one provenance, on *line* or across the whole source."""
        source = self.line(line) if line is not None else self.all()
        return [t for t in source if t.provenance is provenance]

    def in_range(self, start_line: int, end_line: int) -> list[LineToken]:
        """Tokens on lines ``start_line..end_line`` inclusive, clipped to the source."""
        first = max(0, start_line)
        last = min(end_line, len(self._buckets) - 1)
        result: list[LineToken] = []
        for i in range(first, last + 1):
            result.extend(self._buckets[i])
        return result

    def all(self) -> list[LineToken]:
        return [t for bucket in self._buckets for t in bucket]
