#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
CLI interface for the line finder.

Reads lines from stdin (or a file), lets the user narrow them down
interactively, and prints the accepted line to stdout.

Usage:
    some-command | finder
    finder path/to/file.txt
    some-command | finder --batch --filter NEEDLE
    python3 -m finder.cli [args]
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

# Handle both module import and direct script execution
try:
    from finder.debug_logger import init_logger
    from finder.filtering import matches
    from finder.settings import FinderSettings
    from finder.tui import LineSource, run_app
    from finder.tui.line_source import strip_newline
except ImportError:
    from debug_logger import init_logger
    from filtering import matches
    from settings import FinderSettings
    from tui import LineSource, run_app
    from tui.line_source import strip_newline


TTY_PATH = "/dev/tty"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="finder",
        description="Interactively filter lines read from stdin and print the chosen one",
    )
    parser.add_argument("file", nargs="?", help="Read lines from FILE instead of stdin")
    parser.add_argument("--tick", type=float, metavar="SECONDS", help="Render interval (default 0.1)")
    parser.add_argument(
        "--exit-on-close", action="store_true", default=None,
        help="Quit without output when the input stream ends",
    )
    parser.add_argument("--debug", type=int, metavar="LEVEL", help="Debug log level (0-3)")
    parser.add_argument("--config", type=Path, metavar="PATH", help="Settings file")
    parser.add_argument(
        "--filter", metavar="NEEDLE",
        help="Start with this filter string (required with --batch)",
    )
    parser.add_argument(
        "--batch", action="store_true",
        help="No UI: print every input line containing the --filter string",
    )
    return parser


def apply_overrides(settings: FinderSettings, args: argparse.Namespace) -> FinderSettings:
    """Command-line flags win over the settings file and environment."""
    if args.tick is not None:
        if args.tick <= 0:
            raise ValueError("--tick must be positive")
        settings.tick_interval = args.tick
    if args.exit_on_close:
        settings.exit_on_close = True
    if args.debug is not None:
        settings.debug_level = args.debug
    if args.filter:
        settings.initial_filter = args.filter
    return settings


def _attach_terminal_input() -> TextIO:
    """
    Split a piped stdin from keyboard input.

    Returns a stream over the original pipe and points fd 0 at the
    controlling terminal so the UI can read keys from it.
    """
    pipe = os.fdopen(os.dup(sys.stdin.fileno()), "r", encoding="utf-8", errors="replace")
    tty_fd = os.open(TTY_PATH, os.O_RDONLY)
    try:
        os.dup2(tty_fd, sys.stdin.fileno())
    finally:
        os.close(tty_fd)
    return pipe


def filter_stream(stream: Iterable[str], needle: str, out: TextIO) -> int:
    """
    Copy the lines of stream that contain needle to out, as they arrive.

    Returns the number of lines written.
    """
    written = 0
    for raw in stream:
        line = strip_newline(raw)
        if matches(line, needle):
            out.write(line + "\n")
            written += 1
    out.flush()
    return written


def run_batch(path: Optional[str], needle: str) -> None:
    """Non-interactive mode: filter FILE or stdin straight to stdout."""
    try:
        if path:
            with open(path, "r", encoding="utf-8", errors="replace") as stream:
                filter_stream(stream, needle, sys.stdout)
        else:
            filter_stream(sys.stdin, needle, sys.stdout)
    except OSError as e:
        print(f"Error: Failed reading input: {e}", file=sys.stderr)
        sys.exit(1)


def open_input(path: Optional[str]) -> LineSource:
    """Line source for FILE, or for piped stdin."""
    if path:
        stream = open(path, "r", encoding="utf-8", errors="replace")
        return LineSource(stream, name=path)
    if sys.stdin.isatty():
        raise ValueError("no input: pipe lines into finder or pass a file")
    return LineSource(_attach_terminal_input(), name="stdin")


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.batch:
        if args.filter is None:
            parser.error("--batch requires --filter")
        run_batch(args.file, args.filter)
        return

    try:
        settings = apply_overrides(FinderSettings.load(args.config), args)
        logger = init_logger(settings.debug_level, settings.log_path)
        source = open_input(args.file)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        result = run_app(source, settings)
    except Exception as e:
        # Textual has restored the terminal by the time run() unwinds
        logger.error("run", f"{type(e).__name__}: {e}")
        sys.stdout.flush()
        print(f"Error: Failed with an exception: {e}", file=sys.stderr)
        sys.exit(1)

    if result.failure is not None:
        sys.stdout.flush()
        print(f"Error: Failed reading input: {result.failure}", file=sys.stderr)
        sys.exit(1)
    if result.return_code:
        sys.stdout.flush()
        sys.exit(result.return_code)

    if result.selected is not None:
        print(result.selected)
    sys.stdout.flush()


if __name__ == "__main__":
    main()
