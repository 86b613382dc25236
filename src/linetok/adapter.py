"""Projection of structural capture matches onto character-addressed tokens.

Capture matches arrive as UTF-8 byte ranges plus a capture name. This module
converts both ends to character offsets independently, drops malformed
ranges, and maps capture names onto token kinds. Overlapping captures are
left in place; resolving them is the merger's job.
"""

from __future__ import annotations

import logging
from bisect import bisect_right
from collections.abc import Iterable

from linetok.lines import LineIndex
from linetok.tokens import (
    CaptureMatch,
    Fold,
    LineToken,
    NodeRef,
    Provenance,
    Symbol,
    Tag,
    Token,
    TokenKind,
)

logger = logging.getLogger(__name__)

# Capture vocabulary -> token kind. Dotted names not listed here fall back to
# their longest listed prefix ("punctuation.bracket" -> "punctuation").
CAPTURE_KINDS: dict[str, TokenKind] = {
    "keyword": TokenKind.KEYWORD,
    "function": TokenKind.IDENTIFIER,
    "function.builtin": TokenKind.IDENTIFIER,
    "function.method": TokenKind.IDENTIFIER,
    "variable": TokenKind.IDENTIFIER,
    "parameter": TokenKind.IDENTIFIER,
    "field": TokenKind.IDENTIFIER,
    "type": TokenKind.IDENTIFIER,
    "constructor": TokenKind.IDENTIFIER,
    "property": TokenKind.IDENTIFIER,
    "constant": TokenKind.IDENTIFIER,
    "definition": TokenKind.IDENTIFIER,
    "reference": TokenKind.IDENTIFIER,
    "name": TokenKind.IDENTIFIER,
    "operator": TokenKind.OPERATOR,
    "punctuation": TokenKind.PUNCTUATION,
    "punctuation.special": TokenKind.PUNCTUATION,
    "string": TokenKind.STRING,
    "number": TokenKind.NUMBER,
    "comment": TokenKind.COMMENT,
}


def capture_kind(capture_name: str) -> TokenKind:
    """Map a capture name to a token kind, UNKNOWN when unrecognised."""
    name = capture_name
    while True:
        kind = CAPTURE_KINDS.get(name)
        if kind is not None:
            return kind
        head, dot, _ = name.rpartition(".")
        if not dot:
            return TokenKind.UNKNOWN
        name = head


class ByteOffsetMap:
    """Convert UTF-8 byte offsets of a source string to character offsets."""

    __slots__ = ("byte_length", "_starts")

    def __init__(self, source: str) -> None:
        # Lone surrogates take three bytes, as in the text handed to the parser.
        data = source.encode("utf-8", "surrogatepass")
        self.byte_length = len(data)
        if len(data) == len(source):
            self._starts: list[int] | None = None
            return

        # Byte offset at which each character begins, plus the end sentinel.
        starts = []
        offset = 0
        for ch in source:
            starts.append(offset)
            offset += len(ch.encode("utf-8", "surrogatepass"))
        starts.append(offset)
        self._starts = starts

    def to_char(self, byte_offset: int) -> int:
        """Character offset for *byte_offset*.

        An offset inside a multi-byte character maps to that character.
        """
        if self._starts is None:
            return byte_offset
        return bisect_right(self._starts, byte_offset) - 1

    def to_byte(self, char_offset: int) -> int:
        if self._starts is None:
            return char_offset
        return self._starts[char_offset]

    def valid(self, start: int, end: int) -> bool:
        return 0 <= start <= end <= self.byte_length


def _char_ranges(
    matches: Iterable[CaptureMatch], source: str
) -> list[tuple[int, int, CaptureMatch]]:
    offsets = ByteOffsetMap(source)
    ranges = []
    dropped = 0
    for match in matches:
        if not offsets.valid(match.start, match.end):
            dropped += 1
            continue
        ranges.append((offsets.to_char(match.start), offsets.to_char(match.end), match))
    if dropped:
        logger.debug("dropped %d malformed capture range(s)", dropped)
    return ranges


def project(matches: Iterable[CaptureMatch], source: str) -> list[Token]:
    """Convert capture matches into tokens sorted by start offset."""
    tokens = [
        Token(capture_kind(match.capture_name), start, end, source[start:end])
        for start, end, match in _char_ranges(matches, source)
    ]
    tokens.sort(key=lambda t: t.start)
    return tokens


def project_line_tokens(
    matches: Iterable[CaptureMatch],
    source: str,
    provenance: Provenance,
    index: LineIndex | None = None,
) -> list[LineToken]:
    """Convert capture matches into LineTokens carrying *provenance*."""
    if index is None:
        index = LineIndex(source)
    tokens = [
        LineToken(
            kind=capture_kind(match.capture_name),
            start=start,
            end=end,
            text=source[start:end],
            line=index.line_of(start),
            provenance=provenance,
            capture_name=match.capture_name,
        )
        for start, end, match in _char_ranges(matches, source)
    ]
    tokens.sort(key=lambda t: t.start)
    return tokens


def to_symbols(matches: Iterable[CaptureMatch], source: str) -> list[Symbol]:
    """Build Symbol records from ``locals`` captures."""
    symbols = []
    for start, end, match in _char_ranges(matches, source):
        node = None
        if match.node_type is not None:
            node = NodeRef(match.node_type, match.start, match.end)
        symbols.append(Symbol(source[start:end], match.capture_name, start, end, node))
    symbols.sort(key=lambda s: s.start)
    return symbols


def to_folds(matches: Iterable[CaptureMatch], source: str) -> list[Fold]:
    """Build Fold records from ``folds`` captures."""
    folds = [Fold(match.capture_name, start, end) for start, end, match in _char_ranges(matches, source)]
    folds.sort(key=lambda f: (f.start, -f.end))
    return folds


def to_tags(matches: Iterable[CaptureMatch], source: str) -> list[Tag]:
    """Build Tag records from ``tags`` captures."""
    tags = [
        Tag(source[start:end], match.capture_name, start, end)
        for start, end, match in _char_ranges(matches, source)
    ]
    tags.sort(key=lambda t: t.start)
    return tags
