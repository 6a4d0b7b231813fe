#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Append-only store of input lines.

Lines are numbered in arrival order starting at 1 and never change or go
away. Because the backing list only grows, a snapshot is just the list
plus a length: taking one is O(1) and it stays valid after later appends.
"""

from itertools import islice
from typing import Iterator, List, Optional

try:
    from finder.incremental import Incremental, Var
    from finder.models import Line
except ImportError:
    from .incremental import Incremental, Var
    from .models import Line


class LineSnapshot:
    """
    Immutable view of the first `count` entries of an append-only list.

    Also used for filter results, which grow the same way.
    """

    __slots__ = ("_lines", "_count")

    def __init__(self, lines: List[Line], count: Optional[int] = None) -> None:
        self._lines = lines
        self._count = len(lines) if count is None else count

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[Line]:
        return islice(self._lines, self._count)

    def __getitem__(self, index: int) -> Line:
        if index < 0:
            index += self._count
        if not 0 <= index < self._count:
            raise IndexError("snapshot index out of range")
        return self._lines[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LineSnapshot):
            return NotImplemented
        if self._count != other._count:
            return False
        if self._lines is other._lines:
            return True
        return all(a == b for a, b in zip(self, other))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"LineSnapshot(count={self._count})"

    @property
    def last_seq(self) -> int:
        """Sequence number of the newest line, 0 when empty."""
        return self._lines[self._count - 1].seq if self._count else 0

    @property
    def texts(self) -> List[str]:
        return [line.text for line in self]

    def extends(self, other: Optional["LineSnapshot"]) -> bool:
        """True when this snapshot is `other` plus zero or more appended lines."""
        return (
            other is not None
            and other._lines is self._lines
            and other._count <= self._count
        )

    def since(self, count: int) -> Iterator[Line]:
        """Lines appended after a snapshot that had `count` entries."""
        return islice(self._lines, count, self._count)


class LineStore:
    """
    Ordered, append-only collection of lines owned by one engine.

    Every append replaces the store's variable with a fresh snapshot, so
    nodes reading `store.node` recompute at the next stabilization.
    """

    def __init__(self, engine: Incremental) -> None:
        self._lines: List[Line] = []
        self._var = engine.var(self.snapshot(), name="lines")

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def node(self) -> Var:
        return self._var

    def append(self, text: str) -> int:
        """Store a line and return its sequence number."""
        seq = self._lines[-1].seq + 1 if self._lines else 1
        self._lines.append(Line(seq, text))
        self._var.set(self.snapshot())
        return seq

    def snapshot(self) -> LineSnapshot:
        return LineSnapshot(self._lines)
