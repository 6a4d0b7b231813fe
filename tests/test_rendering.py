#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Test suite for view rendering.

Run with: pytest tests/test_rendering.py -v
"""

from datetime import timedelta

import pytest

from finder.models import Dimensions, Line
from finder.rendering import (
    HBox,
    RenderOutput,
    Span,
    Text,
    VBox,
    body_height,
    format_elapsed,
    render,
    render_body,
    render_prompt,
    render_status,
)


def make_lines(*texts):
    return [Line(i + 1, text) for i, text in enumerate(texts)]


def plain_rows(body: VBox):
    return [row.plain for row in body.children]


# =============================================================================
# Body
# =============================================================================


class TestRenderBody:
    """The match list above the status line."""

    def test_rows_fill_body_height(self):
        lines = make_lines("a", "b")
        body = render_body(lines, 0, Dimensions(20, 7), "")
        assert len(body.children) == 5

    def test_bottom_up_with_padding_on_top(self):
        lines = make_lines("first", "second")
        body = render_body(lines, 0, Dimensions(20, 6), "")
        assert plain_rows(body) == ["", "", "  second", "> first"]

    def test_only_head_of_results_shown(self):
        lines = make_lines(*[f"line {i}" for i in range(10)])
        body = render_body(lines, 1, Dimensions(20, 5), "")
        assert plain_rows(body) == ["  line 2", "> line 1", "  line 0"]

    def test_no_selection_means_no_marker(self):
        body = render_body(make_lines("a", "b"), None, Dimensions(20, 4), "")
        assert all(not row.startswith(">") for row in plain_rows(body))

    @pytest.mark.parametrize("height", [0, 1, 2])
    def test_tiny_terminal_has_empty_body(self, height):
        dim = Dimensions(20, height)
        assert body_height(dim) == 0
        assert render_body(make_lines("a"), 0, dim, "") == VBox(())

    def test_match_highlighted(self):
        body = render_body(make_lines("banana"), 0, Dimensions(20, 3), "an")
        row = body.children[0]
        assert row.spans == (
            Span("> "),
            Span("b"),
            Span("an", True),
            Span("an", True),
            Span("a"),
        )

    def test_empty_needle_not_highlighted(self):
        body = render_body(make_lines("banana"), 0, Dimensions(20, 3), "")
        assert not any(span.highlight for span in body.children[0].spans)


# =============================================================================
# Status, prompt, and elapsed time
# =============================================================================


class TestStatusAndPrompt:
    def test_status_has_elapsed_and_count(self):
        status = render_status("4.2s", 17)
        assert status == HBox((Text.of("4.2s"), Text.of("17")))

    def test_prompt(self):
        assert render_prompt("an").plain == "> an"
        assert render_prompt("").plain == "> "


class TestFormatElapsed:
    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "0.0s"),
            (4.2, "4.2s"),
            (59.9, "59.9s"),
            (60, "1m00.0s"),
            (187.5, "3m07.5s"),
            (3723, "1h02m03s"),
            (-5, "0.0s"),
        ],
    )
    def test_format(self, seconds, expected):
        assert format_elapsed(timedelta(seconds=seconds)) == expected


# =============================================================================
# Full render
# =============================================================================


class TestRender:
    def test_layout_is_body_status_prompt(self):
        lines = make_lines("apple", "banana")
        output = render(lines, 1, Dimensions(20, 5), "a", timedelta(seconds=2), 2)

        assert isinstance(output, RenderOutput)
        body, status, prompt = output.layout.children
        assert plain_rows(body) == ["", "> banana", "  apple"]
        assert status == render_status("2.0s", 2)
        assert prompt.plain == "> a"
        assert output.selected == Line(2, "banana")

    def test_no_results_has_no_selected_line(self):
        output = render([], 0, Dimensions(20, 5), "zzz", timedelta(0), 3)
        assert output.selected is None
        body = output.layout.children[0]
        assert plain_rows(body) == ["", "", ""]

    def test_selected_line_even_when_not_visible(self):
        lines = make_lines("a", "b", "c")
        output = render(lines, 2, Dimensions(20, 2), "", timedelta(0), 3)
        assert output.selected == Line(3, "c")
        assert output.layout.children[0] == VBox(())
