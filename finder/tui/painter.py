#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""Convert layout trees into Rich text for the Textual view."""

from rich.text import Text as RichText

try:
    from finder.rendering import HBox, Layout, Text, VBox
except ImportError:
    from ..rendering import HBox, Layout, Text, VBox

FIELD_SEPARATOR = "  "


def paint(node: Layout, highlight_style: str = "bold green") -> RichText:
    """
    Flatten a layout tree into one Rich Text.

    VBox children become lines, HBox children are joined with two spaces,
    and highlighted spans get highlight_style. Rows are never wrapped.
    """
    result = _paint(node, highlight_style)
    result.no_wrap = True
    result.overflow = "crop"
    return result


def _paint(node: Layout, style: str) -> RichText:
    if isinstance(node, Text):
        out = RichText()
        for span in node.spans:
            out.append(span.text, style=style if span.highlight else None)
        return out
    if isinstance(node, HBox):
        return RichText(FIELD_SEPARATOR).join(_paint(child, style) for child in node.children)
    if isinstance(node, VBox):
        # An empty body (terminal too short) takes no row at all
        children = [c for c in node.children if not (isinstance(c, VBox) and not c.children)]
        return RichText("\n").join(_paint(child, style) for child in children)
    raise TypeError(f"not a layout node: {type(node).__name__}")
