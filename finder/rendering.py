#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
View rendering for the line finder.

Turns the filtered lines, selection, and session status into a small tree
of layout nodes. Everything here is pure; painting the tree onto a
terminal is the front end's job (see finder.tui.painter).

Screen layout, top to bottom:
- body: the first matches, drawn bottom-up so match 0 sits on top of
  the status line
- status: elapsed session time and total line count
- prompt: "> " followed by the filter string
"""

from dataclasses import dataclass
from datetime import timedelta
from itertools import islice
from typing import Iterable, Optional, Tuple, Union

try:
    from finder.filtering import split_matches
    from finder.models import (
        PROMPT,
        RESERVED_ROWS,
        SELECTION_MARKER,
        UNSELECTED_MARKER,
        Dimensions,
        Line,
    )
except ImportError:
    from .filtering import split_matches
    from .models import (
        PROMPT,
        RESERVED_ROWS,
        SELECTION_MARKER,
        UNSELECTED_MARKER,
        Dimensions,
        Line,
    )


# =============================================================================
# Layout nodes
# =============================================================================


@dataclass(frozen=True)
class Span:
    """A run of text, optionally highlighted as a match."""

    text: str
    highlight: bool = False


@dataclass(frozen=True)
class Text:
    """One row of styled text."""

    spans: Tuple[Span, ...] = ()

    @classmethod
    def of(cls, text: str) -> "Text":
        return cls((Span(text),) if text else ())

    @property
    def plain(self) -> str:
        return "".join(span.text for span in self.spans)


@dataclass(frozen=True)
class HBox:
    """Children placed side by side."""

    children: Tuple["Layout", ...] = ()


@dataclass(frozen=True)
class VBox:
    """Children stacked top to bottom."""

    children: Tuple["Layout", ...] = ()


Layout = Union[Text, HBox, VBox]


@dataclass(frozen=True)
class RenderOutput:
    """
    What one render produces.

    Attributes:
        layout: Full-screen layout tree
        selected: Line under the selection marker, if any
    """

    layout: VBox
    selected: Optional[Line] = None


# =============================================================================
# Rendering
# =============================================================================


def format_elapsed(elapsed: timedelta) -> str:
    """
    Format a session duration.

    Examples: "4.2s", "3m07.5s", "1h02m03s". Negative spans show as 0.
    """
    tenths = int(round(max(elapsed.total_seconds(), 0.0) * 10))
    if tenths < 600:
        return f"{tenths / 10:.1f}s"
    minutes, tenths = divmod(tenths, 600)
    if minutes < 60:
        return f"{minutes}m{tenths / 10:04.1f}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h{minutes:02d}m{tenths // 10:02d}s"


def highlight(text: str, needle: str) -> Tuple[Span, ...]:
    return tuple(Span(segment, is_match) for segment, is_match in split_matches(text, needle))


def render_row(line: Line, selected: bool, needle: str) -> Text:
    marker = SELECTION_MARKER if selected else UNSELECTED_MARKER
    return Text((Span(marker),) + highlight(line.text, needle))


def body_height(dim: Dimensions) -> int:
    """Rows available for matches; never negative."""
    return max(0, dim.height - RESERVED_ROWS)


def render_body(
    filtered: Iterable[Line],
    selection: Optional[int],
    dim: Dimensions,
    needle: str,
) -> VBox:
    budget = body_height(dim)
    rows = [
        render_row(line, i == selection, needle)
        for i, line in enumerate(islice(filtered, budget))
    ]
    rows.extend(Text() for _ in range(budget - len(rows)))
    rows.reverse()
    return VBox(tuple(rows))


def render_status(elapsed_text: str, total_count: int) -> HBox:
    return HBox((Text.of(elapsed_text), Text.of(str(total_count))))


def render_prompt(needle: str) -> Text:
    return Text.of(PROMPT + needle)


def compose(body: VBox, status: HBox, prompt: Text, selected: Optional[Line]) -> RenderOutput:
    return RenderOutput(VBox((body, status, prompt)), selected)


def render(
    filtered: Iterable[Line],
    selection: Optional[int],
    dim: Dimensions,
    needle: str,
    elapsed: timedelta,
    total_count: int,
) -> RenderOutput:
    """
    Render the whole screen in one go.

    The session builds the same output piecewise (body, status and prompt
    are separate nodes) so that a clock tick only redoes the status line.
    """
    filtered = tuple(filtered)
    index = selection if selection is not None and 0 <= selection < len(filtered) else None
    return compose(
        render_body(filtered, index, dim, needle),
        render_status(format_elapsed(elapsed), total_count),
        render_prompt(needle),
        filtered[index] if index is not None else None,
    )
