"""--debug token dump to stderr."""

from __future__ import annotations

import sys
from collections.abc import Iterable
from typing import TextIO

from linetok.lines import LineTokens
from linetok.tokens import LineToken, Token, format_token


def dump_tokens(tokens: Iterable[Token], *, file: TextIO | None = None) -> None:
    """Print one line per token to *file* (default: stderr)."""
    if file is None:
        file = sys.stderr
    for token in tokens:
        file.write(f"{_indent(1)}{token.kind.value:<12} {token.start:>5}-{token.end:<5} {token.text!r}\n")


def dump_lines(lines: LineTokens, *, file: TextIO | None = None) -> None:
    """Print a line-bucketed token view to *file* (default: stderr)."""
    if file is None:
        file = sys.stderr
    file.write(f"LineTokens ({lines.outcome.value})\n")
    for number, bucket in enumerate(lines):
        if not bucket:
            continue
        file.write(f"{_indent(1)}line {number}\n")
        for token in bucket:
            _dump_line_token(token, 2, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_line_token(token: LineToken, depth: int, f: TextIO) -> None:
    f.write(f"{_indent(depth)}{format_token(token)} [{token.kind.value}]\n")
