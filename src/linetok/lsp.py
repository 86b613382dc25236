"""LSP server exposing linetok results: semantic tokens, symbols, folding ranges."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from lsprotocol.types import (
    TEXT_DOCUMENT_DOCUMENT_SYMBOL,
    TEXT_DOCUMENT_FOLDING_RANGE,
    TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL,
    DocumentSymbol,
    DocumentSymbolParams,
    FoldingRange,
    FoldingRangeKind,
    FoldingRangeParams,
    Position,
    Range,
    SemanticTokens,
    SemanticTokensLegend,
    SemanticTokensParams,
    SymbolKind,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from linetok import __version__
from linetok.engine import Engine
from linetok.lines import LineIndex
from linetok.tokens import Token, TokenKind

logger = logging.getLogger(__name__)

SEMANTIC_TYPES: dict[TokenKind, str] = {
    TokenKind.KEYWORD: "keyword",
    TokenKind.IDENTIFIER: "variable",
    TokenKind.STRING: "string",
    TokenKind.NUMBER: "number",
    TokenKind.COMMENT: "comment",
    TokenKind.OPERATOR: "operator",
}

LEGEND = SemanticTokensLegend(token_types=list(SEMANTIC_TYPES.values()), token_modifiers=[])

_TYPE_INDEX = {kind: i for i, kind in enumerate(SEMANTIC_TYPES)}

_SYMBOL_KINDS: dict[str, SymbolKind] = {
    "definition.function": SymbolKind.Function,
    "definition.method": SymbolKind.Method,
    "definition.class": SymbolKind.Class,
    "definition.import": SymbolKind.Module,
    "definition.parameter": SymbolKind.Variable,
    "definition.var": SymbolKind.Variable,
}


def encode_semantic_tokens(tokens: Iterable[Token], source: str) -> list[int]:
    """Encode ordered, non-overlapping tokens as LSP relative semantic-token data.

    Kinds without a semantic type are skipped; tokens spanning several
    lines are split per line. Columns and lengths are UTF-16 code units.
    """
    index = LineIndex(source)
    data: list[int] = []
    prev_line = 0
    prev_col = 0

    for token in tokens:
        type_index = _TYPE_INDEX.get(token.kind)
        if type_index is None or token.end <= token.start:
            continue
        first = index.line_of(token.start)
        last = index.line_of(token.end - 1)
        for line in range(first, last + 1):
            line_start = index.line_start(line)
            seg_start = max(token.start, line_start)
            seg_end = min(token.end, index.line_end(line))
            if seg_end <= seg_start:
                continue
            col = index.utf16_column(line, seg_start - line_start)
            end_col = index.utf16_column(line, seg_end - line_start)
            delta_line = line - prev_line
            delta_col = col - prev_col if delta_line == 0 else col
            data.extend((delta_line, delta_col, end_col - col, type_index, 0))
            prev_line, prev_col = line, col

    return data


def _range(index: LineIndex, start: int, end: int) -> Range:
    s = index.position(start)
    e = index.position(end)
    return Range(
        start=Position(line=s.line, character=index.utf16_column(s.line, s.column)),
        end=Position(line=e.line, character=index.utf16_column(e.line, e.column)),
    )


def semantic_tokens(ls: LanguageServer, engine: Engine, uri: str) -> SemanticTokens:
    source = ls.workspace.get_text_document(uri).source
    result = engine.highlight(source)
    logger.debug("semantic tokens for %s: %d tokens (%s)", uri, len(result), result.outcome.value)
    return SemanticTokens(data=encode_semantic_tokens(result.items, source))


def document_symbols(ls: LanguageServer, engine: Engine, uri: str) -> list[DocumentSymbol]:
    source = ls.workspace.get_text_document(uri).source
    index = LineIndex(source)
    symbols: list[DocumentSymbol] = []
    for symbol in engine.symbols(source):
        rng = _range(index, symbol.start, symbol.end)
        symbols.append(
            DocumentSymbol(
                name=symbol.name,
                kind=_SYMBOL_KINDS.get(symbol.type, SymbolKind.Variable),
                range=rng,
                selection_range=rng,
                detail=symbol.type,
            )
        )
    return symbols


def folding_ranges(ls: LanguageServer, engine: Engine, uri: str) -> list[FoldingRange]:
    source = ls.workspace.get_text_document(uri).source
    index = LineIndex(source)
    ranges: list[FoldingRange] = []
    seen: set[tuple[int, int]] = set()
    for fold in engine.folds(source):
        start_line = index.line_of(fold.start)
        end_line = index.line_of(max(fold.start, fold.end - 1))
        # A fold must hide at least one line; nested nodes often share lines.
        if end_line <= start_line or (start_line, end_line) in seen:
            continue
        seen.add((start_line, end_line))
        kind = FoldingRangeKind.Comment if fold.type.endswith("comment") else FoldingRangeKind.Region
        ranges.append(FoldingRange(start_line=start_line, end_line=end_line, kind=kind))
    return ranges


def build_server(engine: Engine) -> LanguageServer:
    """Create a language server bound to *engine*."""
    server = LanguageServer("linetok-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full)

    @server.feature(TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL, LEGEND)
    def semantic_tokens_full(ls: LanguageServer, params: SemanticTokensParams) -> SemanticTokens:
        return semantic_tokens(ls, engine, params.text_document.uri)

    @server.feature(TEXT_DOCUMENT_DOCUMENT_SYMBOL)
    def document_symbol(ls: LanguageServer, params: DocumentSymbolParams) -> list[DocumentSymbol]:
        return document_symbols(ls, engine, params.text_document.uri)

    @server.feature(TEXT_DOCUMENT_FOLDING_RANGE)
    def folding_range(ls: LanguageServer, params: FoldingRangeParams) -> list[FoldingRange]:
        return folding_ranges(ls, engine, params.text_document.uri)

    return server


def main() -> None:
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    engine = Engine.create()
    build_server(engine).start_io()
