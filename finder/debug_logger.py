#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Debug logging for the line finder.

Outputs JSON lines format to ~/.local/state/finder/debug.log when
FINDER_DEBUG (or debugLevel in the settings file) is set. The terminal
belongs to the UI while a session runs, so nothing is logged to it.

Levels:
  0 or unset: disabled
  1: info - session lifecycle (start, input closed, end) and errors
  2: debug - stabilization timing
  3: trace - every node recomputation
"""

import json
import os
import sys
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

try:
    from finder.settings import get_debug_level, get_state_dir
except ImportError:
    from .settings import get_debug_level, get_state_dir


LOG_FILE_NAME = "debug.log"
MAX_LOG_SIZE_MB = 10
MAX_LOG_FILES = 3

# Session ID - generated once per process
_SESSION_ID: Optional[str] = None


def _get_session_id() -> str:
    """Get or create a session ID for correlating events."""
    global _SESSION_ID
    if _SESSION_ID is None:
        _SESSION_ID = uuid.uuid4().hex[:12]
    return _SESSION_ID


def _get_log_path() -> Path:
    return get_state_dir() / LOG_FILE_NAME


def _rotate_if_needed(log_path: Path) -> None:
    """Rotate log file if it exceeds size limit."""
    if not log_path.exists():
        return

    size_mb = log_path.stat().st_size / (1024 * 1024)
    if size_mb < MAX_LOG_SIZE_MB:
        return

    # Rotate: debug.log.2 -> delete, debug.log.1 -> .2, debug.log -> .1
    for i in range(MAX_LOG_FILES - 1, 0, -1):
        old_path = log_path.parent / f"{LOG_FILE_NAME}.{i}"
        new_path = log_path.parent / f"{LOG_FILE_NAME}.{i + 1}"
        if old_path.exists():
            if i == MAX_LOG_FILES - 1:
                old_path.unlink()
            else:
                old_path.rename(new_path)

    backup_path = log_path.parent / f"{LOG_FILE_NAME}.1"
    log_path.rename(backup_path)


class DebugLogger:
    """
    JSON lines debug logger.

    All methods are no-ops when the debug level is 0.
    """

    def __init__(self, level: Optional[int] = None, log_path: Optional[Path] = None) -> None:
        self._level = get_debug_level() if level is None else level
        self._log_path = (log_path or _get_log_path()) if self._level > 0 else None

    @property
    def enabled(self) -> bool:
        return self._level > 0

    @property
    def level(self) -> int:
        return self._level

    @property
    def log_path(self) -> Optional[Path]:
        return self._log_path

    def _write(self, event: Dict[str, Any]) -> None:
        """Write an event to the log file."""
        if not self.enabled or self._log_path is None:
            return

        event["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        event["session_id"] = _get_session_id()
        event["pid"] = os.getpid()

        try:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            _rotate_if_needed(self._log_path)

            with open(self._log_path, "a") as f:
                f.write(json.dumps(event, default=str) + "\n")
        except (OSError, ValueError) as e:
            # Never let logging errors affect the session.
            if self._level >= 3:
                print(f"[debug_logger] write failed: {type(e).__name__}: {e}", file=sys.stderr)

    # =========================================================================
    # Level 1: Info events
    # =========================================================================

    def session_start(self, source: str, tick_interval: float) -> None:
        """Log session start."""
        if self._level < 1:
            return
        self._write(
            {
                "event": "session_start",
                "level": "info",
                "source": source,
                "tick_interval": tick_interval,
            }
        )

    def input_closed(self, line_count: int) -> None:
        """Log end of the input stream."""
        if self._level < 1:
            return
        self._write({"event": "input_closed", "level": "info", "line_count": line_count})

    def session_end(self, reason: str, line_count: int, selected: bool) -> None:
        """Log how the session ended (accept, interrupt, input_closed, error)."""
        if self._level < 1:
            return
        self._write(
            {
                "event": "session_end",
                "level": "info",
                "reason": reason,
                "line_count": line_count,
                "selected": selected,
            }
        )

    def error(self, operation: str, error: str, context: Optional[Dict] = None) -> None:
        """Log errors - level 1 (always shown when debug enabled)."""
        if self._level < 1:
            return
        event = {"event": "error", "level": "error", "op": operation, "err": error}
        if context:
            event["ctx"] = context
        self._write(event)

    # =========================================================================
    # Level 2: Debug events (includes timing)
    # =========================================================================

    @contextmanager
    def timer(self, operation: str, context: Optional[Dict[str, Any]] = None):
        """Context manager to time any operation at level 2.

        Usage:
            with logger.timer("stabilize", {"lines": 120}):
                engine.stabilize()

        Logs: {"event": "timing", "op": "stabilize", "ms": 0.4, "lines": 120}
        """
        if self._level < 2:
            yield
            return

        start = time.perf_counter()
        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            event = {
                "event": "timing",
                "level": "debug",
                "op": operation,
                "ms": round(duration_ms, 2),
            }
            if context:
                event.update(context)
            self._write(event)

    # =========================================================================
    # Level 3: Trace events
    # =========================================================================

    def recompute(self, node: str, duration_ms: float, changed: bool) -> None:
        """Log one derived node recomputation."""
        if self._level < 3:
            return
        self._write(
            {
                "event": "recompute",
                "level": "trace",
                "node": node,
                "ms": round(duration_ms, 3),
                "changed": changed,
            }
        )


# Global singleton
_logger: Optional[DebugLogger] = None


def get_logger() -> DebugLogger:
    """Get the global debug logger instance."""
    global _logger
    if _logger is None:
        _logger = DebugLogger()
    return _logger


def init_logger(level: int, log_path: Optional[Path] = None) -> DebugLogger:
    """Replace the global logger with one at an explicit level."""
    global _logger
    _logger = DebugLogger(level=level, log_path=log_path)
    return _logger


def reset_logger() -> None:
    """Reset the global logger (for testing)."""
    global _logger
    _logger = None
