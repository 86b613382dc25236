"""Command-line interface for linetok."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from linetok.cache import DEFAULT_CAPACITY
from linetok.debug import dump_lines, dump_tokens
from linetok.engine import Engine, EngineOptions, Result
from linetok.lines import LineTokens
from linetok.tokens import LineToken, Token, format_token

CONFIG_NAME = "linetok.toml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    output_file: Path | None
    engine: EngineOptions
    mode: str
    line: int | None
    line_range: tuple[int, int] | None
    as_json: bool
    debug: bool
    log_level: str


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="linetok",
        description="Tokenize source files and project structural query results by line",
    )
    p.add_argument("input", help="Source file to tokenize")
    p.add_argument("-o", "--output", help="Output file (default: stdout)")
    p.add_argument(
        "--config",
        metavar="FILE",
        help=f"Config file (default: auto-discover {CONFIG_NAME})",
    )
    p.add_argument("--language", help="Grammar to use for structural analysis (default: python)")
    p.add_argument(
        "--query-path",
        action="append",
        default=[],
        metavar="DIR",
        help="Extra query search directory (repeatable)",
    )
    p.add_argument(
        "--cache-size",
        type=int,
        default=None,
        metavar="N",
        help=f"Result cache capacity per category (default: {DEFAULT_CAPACITY})",
    )
    p.add_argument("--lexical", action="store_true", help="Disable structural analysis")

    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--by-line", action="store_true", help="Print highlight and tag tokens per line")
    mode.add_argument("--line", type=int, metavar="N", help="Print the tokens of line N (0-based)")
    mode.add_argument("--lines", metavar="A:B", help="Print the tokens of lines A..B inclusive")
    mode.add_argument(
        "--all-tokens",
        type=int,
        metavar="N",
        help="Print structural and basic tokens of line N merged",
    )
    mode.add_argument("--symbols", action="store_true", help="Print symbols from the locals query")
    mode.add_argument("--folds", action="store_true", help="Print folding regions")
    mode.add_argument("--tags", action="store_true", help="Print tags")

    p.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    p.add_argument("--debug", action="store_true", help="Dump tokens to stderr")
    p.add_argument(
        "--log-level",
        type=str.upper,
        choices=_LOG_LEVELS,
        default=None,
        help="Logging level (default: WARNING)",
    )
    return p


def parse_lines_arg(s: str) -> tuple[int, int]:
    """Parse an ``A:B`` line range into (A, B)."""
    start, sep, end = s.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"invalid line range (expected A:B): {s}")
    try:
        return int(start), int(end)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid line range (expected A:B): {s}") from None


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / CONFIG_NAME

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)

    cfg_engine = config.get("engine")
    if not isinstance(cfg_engine, dict):
        cfg_engine = {}

    # Language: config < CLI
    language = "python"
    if isinstance(cfg_engine.get("language"), str):
        language = cfg_engine["language"]
    if args.language:
        language = args.language

    # Cache size: config < CLI; 0 in config means unbounded
    cache_size: int | None = DEFAULT_CAPACITY
    cfg_cache = cfg_engine.get("cache_size")
    if isinstance(cfg_cache, int) and not isinstance(cfg_cache, bool):
        cache_size = cfg_cache if cfg_cache > 0 else None
    if args.cache_size is not None:
        if args.cache_size < 0:
            raise argparse.ArgumentTypeError(f"invalid cache size: {args.cache_size}")
        cache_size = args.cache_size if args.cache_size > 0 else None

    # Query paths: config < CLI, relative config entries resolve from the input dir
    query_paths: list[Path] = []
    cfg_qpaths = cfg_engine.get("query_paths")
    if isinstance(cfg_qpaths, list):
        query_paths.extend(input_dir / str(p) for p in cfg_qpaths)
    query_paths.extend(Path(p) for p in args.query_path)

    structural = True
    if isinstance(cfg_engine.get("structural"), bool):
        structural = cfg_engine["structural"]
    if args.lexical:
        structural = False

    # Log level: config < CLI
    log_level = "WARNING"
    cfg_logging = config.get("logging")
    if isinstance(cfg_logging, dict):
        cfg_level = cfg_logging.get("level")
        if isinstance(cfg_level, str):
            if cfg_level.upper() not in _LOG_LEVELS:
                raise argparse.ArgumentTypeError(f"invalid log level in config: {cfg_level}")
            log_level = cfg_level.upper()
    if args.log_level:
        log_level = args.log_level

    mode = "highlight"
    line = None
    line_range = None
    if args.by_line:
        mode = "by-line"
    elif args.line is not None:
        mode, line = "line", args.line
    elif args.lines is not None:
        mode, line_range = "lines", parse_lines_arg(args.lines)
    elif args.all_tokens is not None:
        mode, line = "all-tokens", args.all_tokens
    elif args.symbols:
        mode = "symbols"
    elif args.folds:
        mode = "folds"
    elif args.tags:
        mode = "tags"

    output_file = Path(args.output) if args.output else None

    return CliOptions(
        input_file=input_file,
        output_file=output_file,
        engine=EngineOptions(
            language=language,
            cache_size=cache_size,
            query_paths=query_paths,
            structural=structural,
        ),
        mode=mode,
        line=line,
        line_range=line_range,
        as_json=args.json,
        debug=args.debug,
        log_level=log_level,
    )


def run(options: CliOptions, engine: Engine) -> str:
    """Read the input file, run the requested operation and format the output."""
    source = options.input_file.read_text(encoding="utf-8")

    if options.mode == "highlight":
        result = engine.highlight(source)
        if options.debug:
            dump_tokens(result.items)
        return _format_tokens(result, options.as_json)

    if options.mode in ("symbols", "folds", "tags"):
        records = getattr(engine, options.mode)(source)
        return _format_records(records, options.as_json)

    tree = engine.parse(source)
    lines = engine.tokens_by_line(tree, source)
    if options.debug:
        dump_lines(lines)

    if options.mode == "by-line":
        return _format_lines(lines, options.as_json)
    if options.mode == "line":
        assert options.line is not None
        selected = lines.line(options.line)
    elif options.mode == "lines":
        assert options.line_range is not None
        selected = lines.in_range(*options.line_range)
    else:
        assert options.line is not None
        selected = engine.all_line_tokens(tree, source, options.line)
    return _format_line_tokens(selected, options.as_json)


def _format_tokens(result: Result[Token], as_json: bool) -> str:
    if as_json:
        payload = {
            "outcome": result.outcome.value,
            "reason": result.reason,
            "tokens": [
                {"kind": t.kind.value, "start": t.start, "end": t.end, "text": t.text}
                for t in result.items
            ],
        }
        return json.dumps(payload, indent=2) + "\n"
    return "".join(f"{t.kind.value} {t.start}-{t.end} {t.text!r}\n" for t in result.items)


def _format_line_tokens(tokens: list[LineToken], as_json: bool) -> str:
    if as_json:
        return json.dumps([t.info() for t in tokens], indent=2) + "\n"
    return "".join(f"{t.line}: {format_token(t)}\n" for t in tokens)


def _format_lines(lines: LineTokens, as_json: bool) -> str:
    if as_json:
        payload = {
            "outcome": lines.outcome.value,
            "lines": [[t.info() for t in bucket] for bucket in lines],
        }
        return json.dumps(payload, indent=2) + "\n"
    return _format_line_tokens(lines.all(), as_json=False)


def _format_records(result: Result[Any], as_json: bool) -> str:
    if as_json:
        payload = {
            "outcome": result.outcome.value,
            "reason": result.reason,
            "items": [dataclasses.asdict(r) for r in result.items],
        }
        return json.dumps(payload, indent=2) + "\n"
    out = []
    for record in result.items:
        label = f"{record.type} {record.name}" if hasattr(record, "name") else record.type
        out.append(f"{label} {record.start}-{record.end}\n")
    return "".join(out)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except tomllib.TOMLDecodeError as exc:
        print(f"error: invalid config file: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=options.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    engine = Engine.create(options.engine)
    try:
        output = run(options, engine)
    except (OSError, UnicodeDecodeError) as exc:
        print(f"error: cannot read {options.input_file}: {exc}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    if options.output_file:
        options.output_file.write_text(output, encoding="utf-8")
    else:
        sys.stdout.write(output)

    return 0
