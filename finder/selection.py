#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Selection index arithmetic.

Index 0 is the first filtered line, drawn at the bottom of the list right
above the prompt, so "up" moves to larger indices.
"""

from typing import Optional, Sequence

try:
    from finder.models import Line
except ImportError:
    from .models import Line

UP = 1
DOWN = -1


def move(current: int, delta: int, result_length: int) -> int:
    """Move the selection by delta, clamped to [0, max(0, result_length - 1)]."""
    upper = max(0, result_length - 1)
    return min(max(current + delta, 0), upper)


def clamp(index: int, result_length: int) -> Optional[int]:
    """
    Clamp a selection to the current result.

    Returns None (no selection) when the result is empty.
    """
    if result_length <= 0:
        return None
    return min(max(index, 0), result_length - 1)


def selected_line(lines: Sequence[Line], index: Optional[int]) -> Optional[Line]:
    if index is None or not 0 <= index < len(lines):
        return None
    return lines[index]
