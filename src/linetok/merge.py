"""Reconciliation of token streams from different producers."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar

from linetok.lines import LineIndex
from linetok.tokens import LineToken, Provenance, Token, TokenKind


class _Ranged(Protocol):
    @property
    def start(self) -> int: ...

    @property
    def end(self) -> int: ...


S = TypeVar("S", bound=_Ranged)
B = TypeVar("B", bound=_Ranged)

_WORD = re.compile(r"\S+")


def fill(tokens: Iterable[Token], source: str) -> list[Token]:
    """Make *tokens* a partition of ``[0, len(source))``.

    Gaps (before the first token, between tokens, after the last) become
    WHITESPACE tokens. Tokens are taken in start order, longest first on
    ties; one that begins inside an already emitted token is dropped, as are
    empty tokens and tokens reaching past the end of the source.
    """
    ordered = sorted(tokens, key=lambda t: (t.start, t.start - t.end))
    result: list[Token] = []
    pos = 0

    for token in ordered:
        if token.start < pos or token.end <= token.start or token.end > len(source):
            continue
        if token.start > pos:
            result.append(Token(TokenKind.WHITESPACE, pos, token.start, source[pos : token.start]))
        result.append(token)
        pos = token.end

    if pos < len(source):
        result.append(Token(TokenKind.WHITESPACE, pos, len(source), source[pos:]))
    return result


def merge(structural: Sequence[S], basic: Iterable[B]) -> list[S | B]:
    """Combine structural tokens with basic tokens not contained in any of them.

    A basic token is dropped when some structural token satisfies
    ``s.start <= b.start and s.end >= b.end``. Partial overlaps are kept on
    both sides. The result is ordered by start, structural first on ties.
    """
    combined: list[S | B] = list(structural)
    for b in basic:
        if not any(s.start <= b.start and s.end >= b.end for s in structural):
            combined.append(b)
    combined.sort(key=lambda t: t.start)
    return combined


def basic_tokens(source: str, line: int, index: LineIndex | None = None) -> list[LineToken]:
    """Whitespace-delimited words of *line*, with absolute offsets."""
    if index is None:
        index = LineIndex(source)
    if not 0 <= line < index.line_count:
        return []

    base = index.line_start(line)
    return [
        LineToken(
            kind=TokenKind.UNKNOWN,
            start=base + m.start(),
            end=base + m.end(),
            text=m.group(),
            line=line,
            provenance=Provenance.BASIC,
            capture_name="word",
        )
        for m in _WORD.finditer(index.line_text(line))
    ]
