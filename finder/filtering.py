#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Substring filtering of input lines.

Matching is a literal, case-sensitive substring test: the needle is never
treated as a pattern. The empty needle matches every line.

filtered_node() wires the filter into an engine so that appending lines
only scans the new lines, while changing the needle starts over.
"""

from typing import Iterable, List, Optional, Tuple

try:
    from finder.incremental import BindNode, Incremental, Node
    from finder.line_store import LineSnapshot
    from finder.models import Line
except ImportError:
    from .incremental import BindNode, Incremental, Node
    from .line_store import LineSnapshot
    from .models import Line


def matches(text: str, needle: str) -> bool:
    return needle in text


def filter_lines(lines: Iterable[Line], needle: str) -> Tuple[Line, ...]:
    """Lines whose text contains needle, in their original order."""
    return tuple(line for line in lines if matches(line.text, needle))


def split_matches(text: str, needle: str) -> List[Tuple[str, bool]]:
    """
    Split text around every non-overlapping occurrence of needle.

    Returns (segment, is_match) pairs that concatenate back to text.
    Empty segments are dropped.
    """
    if not needle:
        return [(text, False)] if text else []
    parts = text.split(needle)
    segments: List[Tuple[str, bool]] = []
    for i, part in enumerate(parts):
        if i:
            segments.append((needle, True))
        if part:
            segments.append((part, False))
    return segments


class AppendOnlyFilter:
    """
    Filter state for one needle over one growing line store.

    Called with successive snapshots it only looks at lines added since the
    previous call. A snapshot that is not an extension of the last one
    (another store, or fewer lines) is rescanned from the start.
    """

    def __init__(self, needle: str) -> None:
        self.needle = needle
        self.lines_scanned = 0
        self._seen: Optional[LineSnapshot] = None
        self._matches: List[Line] = []

    def __call__(self, snapshot: LineSnapshot) -> LineSnapshot:
        if snapshot.extends(self._seen):
            fresh = snapshot.since(len(self._seen))
            self.lines_scanned += len(snapshot) - len(self._seen)
        else:
            # Earlier results may still be referenced, so start a new list
            self._matches = []
            fresh = iter(snapshot)
            self.lines_scanned += len(snapshot)
        self._matches.extend(filter_lines(fresh, self.needle))
        self._seen = snapshot
        return LineSnapshot(self._matches)


def filtered_node(engine: Incremental, lines: Node, needle: Node) -> BindNode:
    """
    Node holding the lines of `lines` that contain the value of `needle`.

    The needle is bound: each new needle gets a fresh AppendOnlyFilter and
    a full rescan, since none of the previous per-line decisions still
    hold. New lines under an unchanged needle are filtered incrementally.
    """
    def build(value: str) -> Node:
        return engine.map(lines, AppendOnlyFilter(value), name=f"filter[{value!r}]")

    return engine.bind(needle, build, name="filtered")
