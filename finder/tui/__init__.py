#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Terminal front end for the line finder.

Provides:
- A background line source feeding the session from a stream
- A Textual app that ticks the session and paints its render output

Usage:
    from finder.tui import LineSource, run_app
    result = run_app(LineSource(sys.stdin))
"""

from .line_source import Batch, LineSource


# Defer app import to avoid textual dependency at module load time
def _get_app():
    """Lazy import of app module to avoid textual import at module load."""
    from .app import FinderApp, RunResult, run_app
    return FinderApp, RunResult, run_app


def run_app(*args, **kwargs):
    """Run the TUI application. See app.run_app for details."""
    _, _, _run_app = _get_app()
    return _run_app(*args, **kwargs)


def __getattr__(name):
    if name == "FinderApp":
        return _get_app()[0]
    if name == "RunResult":
        return _get_app()[1]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Line source
    "Batch",
    "LineSource",
    # App (lazy loaded)
    "FinderApp",
    "RunResult",
    "run_app",
]
