"""Token types, data structures, and character classification helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class TokenKind(Enum):
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    STRING = "string"
    NUMBER = "number"
    COMMENT = "comment"
    PUNCTUATION = "punctuation"
    OPERATOR = "operator"
    WHITESPACE = "whitespace"
    UNKNOWN = "unknown"


class Provenance(Enum):
    """Which subsystem produced a line token."""

    HIGHLIGHT = "highlight"  # highlights query (or the lexical fallback)
    TAG = "tag"  # tags query
    BASIC = "basic"  # whitespace-delimited words


@dataclass(frozen=True, slots=True)
class Position:
    """Source position: 0-based line and column, 0-based character offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Token:
    """A classified half-open character range ``[start, end)`` of the source."""

    kind: TokenKind
    start: int
    end: int
    text: str

    def __len__(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class LineToken:
    """A token annotated with its line, provenance and raw capture name."""

    kind: TokenKind
    start: int
    end: int
    text: str
    line: int
    provenance: Provenance
    capture_name: str

    def __len__(self) -> int:
        return self.end - self.start

    def to_token(self) -> Token:
        return Token(self.kind, self.start, self.end, self.text)

    def info(self) -> dict[str, Any]:
        """Return the token as a plain dict (JSON-friendly)."""
        return {
            "line": self.line,
            "start": self.start,
            "end": self.end,
            "text": self.text,
            "type": self.provenance.value,
            "captureName": self.capture_name,
            "kind": self.kind.value,
            "length": len(self.text),
        }


@dataclass(frozen=True, slots=True)
class CaptureMatch:
    """One capture from a structural query, addressed in UTF-8 bytes."""

    start: int
    end: int
    capture_name: str
    node_type: str | None = None


@dataclass(frozen=True, slots=True)
class NodeRef:
    """Opaque handle to a node of a structural tree.

    Identifies the node by type and byte range, so it resolves against any
    parse of the same text. The tree owns the node; resolve the handle
    through the backend.
    """

    type: str
    start_byte: int
    end_byte: int


@dataclass(frozen=True, slots=True)
class Symbol:
    name: str
    type: str
    start: int
    end: int
    node: NodeRef | None = None


@dataclass(frozen=True, slots=True)
class Fold:
    type: str
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class Tag:
    name: str
    type: str
    start: int
    end: int


def format_token(token: LineToken) -> str:
    """Render a line token as ``type:capture "text" (start-end)``."""
    return (
        f'{token.provenance.value}:{token.capture_name} "{token.text}" '
        f"({token.start}-{token.end})"
    )


KEYWORDS = frozenset(
    {
        "def",
        "class",
        "if",
        "else",
        "elif",
        "for",
        "while",
        "try",
        "except",
        "finally",
        "with",
        "as",
        "import",
        "from",
        "return",
        "yield",
        "break",
        "continue",
        "pass",
        "raise",
        "assert",
        "del",
        "global",
        "nonlocal",
        "lambda",
        "True",
        "False",
        "None",
        "and",
        "or",
        "not",
        "in",
        "is",
    }
)

OPERATOR_CHARS = frozenset("+-*/=<>!&|%^~")
PUNCTUATION_CHARS = frozenset("()[]{},.;:")
QUOTE_CHARS = frozenset("\"'")

_WHITESPACE = frozenset(" \t\r\n")
_DIGITS = frozenset("0123456789")
_IDENT_START = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_IDENT_CHARS = _IDENT_START | _DIGITS


def is_whitespace(ch: str) -> bool:
    """Return True for space, tab, CR and LF (and nothing else)."""
    return ch in _WHITESPACE


def is_digit(ch: str) -> bool:
    """Return True for ASCII 0-9."""
    return ch in _DIGITS


def is_ident_start(ch: str) -> bool:
    """Return True if ch may start an identifier ([A-Za-z_])."""
    return ch in _IDENT_START


def is_ident_char(ch: str) -> bool:
    """Return True if ch may continue an identifier ([A-Za-z0-9_])."""
    return ch in _IDENT_CHARS
