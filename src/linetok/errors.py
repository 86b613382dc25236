"""Error types with formatted source context."""

from __future__ import annotations


class BackendUnavailable(Exception):
    """Raised when the structural parser (or its grammar) cannot be loaded."""

    def __init__(self, language: str, reason: str) -> None:
        self.language = language
        self.reason = reason
        super().__init__(f"structural backend unavailable for {language!r}: {reason}")


class QueryError(Exception):
    """Raised when a query resource fails to compile, with query-source context."""

    def __init__(self, message: str, name: str, source: str, offset: int | None = None) -> None:
        self.message = message
        self.name = name
        self.source = source
        self.offset = offset
        super().__init__(self.format())

    def format(self) -> str:
        header = f"error: {self.message}\n  --> {self.name}.scm"
        if self.offset is None or not 0 <= self.offset <= len(self.source):
            return header

        line_idx = self.source.count("\n", 0, self.offset)
        line_start = self.source.rfind("\n", 0, self.offset) + 1
        col = self.offset - line_start + 1

        lines = self.source.splitlines()
        source_line = lines[line_idx] if line_idx < len(lines) else ""

        line_num = str(line_idx + 1)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"
        pad = " " * (col - 1)

        return (
            f"{header}:{line_idx + 1}:{col}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}^"
        )
