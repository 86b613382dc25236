"""Incremental tokenization and syntax-query projection for code editors."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from linetok.tokens import Token

__version__ = "0.1.0"


def tokenize(source: str) -> list[Token]:
    """Lexically tokenize *source* (no structural analysis)."""
    from linetok.lexer import tokenize as _tokenize

    return _tokenize(source)
