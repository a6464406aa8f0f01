"""Command-line interface for sv-fmt."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from sv_fmt.config import FormatConfig, load_config
from sv_fmt.errors import ConfigError, EncodingError, FormatterError, ParseError
from sv_fmt.formatter.engine import format_text
from sv_fmt.hdl_parser.parser import parse_systemverilog
from sv_fmt.hdl_parser.tree_walker import TreeDumper

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = frozenset({".sv", ".svh", ".v", ".vh"})


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="sv-fmt",
        description="SystemVerilog formatter",
    )
    p.add_argument("paths", nargs="+", metavar="PATH",
                   help="Files or directories to format")
    p.add_argument("-i", "--in-place", action="store_true",
                   help="Overwrite files in place")
    p.add_argument("--check", action="store_true",
                   help="Only check whether files are already formatted")
    p.add_argument("--config", metavar="FILE",
                   help="Config file (default: ./sv-fmt.toml if present)")
    p.add_argument("--debug", action="store_true",
                   help="Dump syntax tree to stderr")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Enable verbose logging")
    return p


def is_source_file(path: Path) -> bool:
    return path.suffix.lower() in SOURCE_SUFFIXES


def collect_files(paths: list[Path]) -> list[Path]:
    """Expand directories recursively and keep SystemVerilog sources only."""
    files: set[Path] = set()
    for path in paths:
        if path.is_dir():
            for root, _dirs, names in os.walk(path):
                for name in names:
                    candidate = Path(root) / name
                    if candidate.is_file() and is_source_file(candidate):
                        files.add(candidate)
        elif path.is_file():
            if is_source_file(path):
                files.add(path)
        else:
            raise FileNotFoundError(f"no such file or directory: {path}")
    return sorted(files)


def read_input(path: Path) -> str:
    """Read a source file as UTF-8 text with LF line endings."""
    data = path.read_bytes()
    if data.startswith(b"\xef\xbb\xbf"):
        data = data[3:]
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(f"{path} is not valid UTF-8: {e}") from e
    return text.replace("\r\n", "\n").replace("\r", "\n")


def ensure_trailing_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


def line_length_violations(text: str, max_len: int) -> list[tuple[int, int]]:
    """(line number, column count) for every line longer than max_len."""
    if max_len == 0:
        return []
    return [
        (lineno, len(line))
        for lineno, line in enumerate(text.splitlines(), start=1)
        if len(line) > max_len
    ]


def process_file(path: Path, config: FormatConfig, args: argparse.Namespace) -> bool:
    """Format one file according to the mode flags. Returns False if it failed a check."""
    original = read_input(path)
    if args.debug:
        print(TreeDumper().dump(parse_systemverilog(original)), file=sys.stderr)
    formatted = ensure_trailing_newline(format_text(original, config))
    changed = formatted != ensure_trailing_newline(original)

    if args.check:
        ok = True
        if changed:
            print(f"needs formatting: {path}", file=sys.stderr)
            ok = False
        for lineno, cols in line_length_violations(formatted, config.max_line_length):
            print(f"line {lineno} has {cols} columns (max {config.max_line_length}) in {path}",
                  file=sys.stderr)
            ok = False
        return ok

    if args.in_place:
        if changed:
            path.write_text(formatted, encoding="utf-8")
            logger.info("Reformatted %s", path)
        else:
            logger.debug("Unchanged %s", path)
    else:
        sys.stdout.write(formatted)
    return True


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.check and args.in_place:
        print("error: --check and --in-place cannot be used together", file=sys.stderr)
        return 2

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        files = collect_files([Path(p) for p in args.paths])
    except FileNotFoundError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if not files:
        print("error: no SystemVerilog files found to format", file=sys.stderr)
        return 2
    if len(files) > 1 and not (args.check or args.in_place):
        print("error: formatting multiple files requires --in-place or --check", file=sys.stderr)
        return 2

    failures = 0
    for path in files:
        try:
            if not process_file(path, config, args):
                failures += 1
        except ParseError as exc:
            logger.error("%s", exc.format(str(path)))
            failures += 1
        except (FormatterError, OSError) as exc:
            logger.error("Failed to format %s: %s", path, exc)
            failures += 1

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
