"""Lexical scanner: converts source text into a contiguous token stream.

Single left-to-right pass with one character of lookahead and no
backtracking. Every character lands in exactly one token, so the scan never
fails; unrecognised characters become one-character UNKNOWN tokens.
"""

from __future__ import annotations

from linetok.tokens import (
    KEYWORDS,
    OPERATOR_CHARS,
    PUNCTUATION_CHARS,
    QUOTE_CHARS,
    Token,
    TokenKind,
    is_digit,
    is_ident_char,
    is_ident_start,
    is_whitespace,
)


class Lexer:
    """Tokenize source text into a list of Token objects."""

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        while self._pos < len(self._source):
            self._lex_one()
        return self._tokens

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _at_end(self) -> bool:
        return self._pos >= len(self._source)

    def _emit(self, kind: TokenKind, start: int) -> Token:
        tok = Token(kind, start, self._pos, self._source[start : self._pos])
        self._tokens.append(tok)
        return tok

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _lex_one(self) -> None:
        ch = self._peek()

        if is_whitespace(ch):
            self._lex_whitespace()
            return

        if ch == "#":
            self._lex_comment()
            return

        if ch in QUOTE_CHARS:
            self._lex_string(ch)
            return

        if is_digit(ch):
            self._lex_number()
            return

        if is_ident_start(ch):
            self._lex_word()
            return

        start = self._pos
        self._pos += 1
        if ch in OPERATOR_CHARS:
            self._emit(TokenKind.OPERATOR, start)
        elif ch in PUNCTUATION_CHARS:
            self._emit(TokenKind.PUNCTUATION, start)
        else:
            self._emit(TokenKind.UNKNOWN, start)

    def _lex_whitespace(self) -> None:
        start = self._pos
        while not self._at_end() and is_whitespace(self._peek()):
            self._pos += 1
        self._emit(TokenKind.WHITESPACE, start)

    def _lex_comment(self) -> None:
        # Runs to end of line; the newline itself belongs to the next token.
        start = self._pos
        while not self._at_end() and self._peek() != "\n":
            self._pos += 1
        self._emit(TokenKind.COMMENT, start)

    def _lex_string(self, quote: str) -> None:
        """Scan a quoted string; an unterminated string runs to end of input."""
        start = self._pos
        self._pos += 1  # opening quote

        while not self._at_end():
            ch = self._peek()
            if ch == quote:
                self._pos += 1
                break
            if ch == "\\" and self._pos + 1 < len(self._source):
                self._pos += 2
            else:
                self._pos += 1

        self._emit(TokenKind.STRING, start)

    def _lex_number(self) -> None:
        # Digits and dots, unvalidated: "1.2.3" is one NUMBER token.
        start = self._pos
        while not self._at_end() and (is_digit(self._peek()) or self._peek() == "."):
            self._pos += 1
        self._emit(TokenKind.NUMBER, start)

    def _lex_word(self) -> None:
        start = self._pos
        while not self._at_end() and is_ident_char(self._peek()):
            self._pos += 1
        word = self._source[start : self._pos]
        self._emit(TokenKind.KEYWORD if word in KEYWORDS else TokenKind.IDENTIFIER, start)


def tokenize(source: str) -> list[Token]:
    """Convenience function: tokenize source text and return token list."""
    return Lexer(source).tokenize()
