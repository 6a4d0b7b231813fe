#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Data models for the line finder.

Contains the dataclasses, enums, and constants shared by the engine,
the session, and the terminal front end.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


# =============================================================================
# Constants
# =============================================================================

SELECTION_MARKER = "> "
UNSELECTED_MARKER = "  "
PROMPT = "> "

# Rows reserved below the body: the status line and the prompt line
RESERVED_ROWS = 2

DEFAULT_TICK_INTERVAL = 0.1  # seconds between render ticks


# =============================================================================
# Enums
# =============================================================================


class InputKind(str, Enum):
    """Keyboard events the session reacts to."""
    CHAR = "char"
    BACKSPACE = "backspace"
    RETURN = "return"
    UP = "up"
    DOWN = "down"
    INTERRUPT = "interrupt"
    OTHER = "other"


class Action(str, Enum):
    """What the driver loop should do after an input event."""
    EXIT = "exit"
    EXIT_AND_PRINT = "exit_and_print"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class Line:
    """
    A single input line.

    Attributes:
        seq: Sequence number assigned at arrival (first line is 1)
        text: Line content without the trailing newline
    """

    seq: int
    text: str


@dataclass(frozen=True)
class Dimensions:
    """Terminal size in character cells."""

    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class UserInput:
    """
    A decoded keyboard event.

    Attributes:
        kind: Which key was pressed
        char: The typed character, only set for InputKind.CHAR
    """

    kind: InputKind
    char: str = ""

    @classmethod
    def of_char(cls, char: str) -> "UserInput":
        return cls(InputKind.CHAR, char)


@dataclass(frozen=True)
class Model:
    """
    Point-in-time snapshot of the session state.

    Attributes:
        lines: Snapshot of the line store
        start: Session start time
        filter: Current filter string (the needle)
        selected: Raw selection index, may be transiently out of range
        dim: Current terminal dimensions
    """

    lines: Any
    start: datetime
    filter: str = ""
    selected: int = 0
    dim: Dimensions = Dimensions()

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def get(self, seq: int) -> Optional[Line]:
        """Look up a line by its sequence number."""
        if 1 <= seq <= len(self.lines):
            return self.lines[seq - 1]
        return None
