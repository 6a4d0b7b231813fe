#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
finder - interactive line filtering with incremental recomputation.

Lines arrive on stdin, the user types a substring, and the matching lines
are shown with a movable selection. State lives in a dependency-tracked
graph so each event recomputes only what depends on it.

Usage:
    from finder import FinderSession, UserInput

    session = FinderSession()
    for text in ["apple", "banana", "grape"]:
        session.handle_line(text)
    session.handle_input(UserInput.of_char("a"))
    session.stabilize()
    session.filtered_texts  # ["apple", "banana", "grape"]
"""

# Incremental engine
from finder.incremental import (
    BindNode,
    CycleError,
    ForeignNodeError,
    Incremental,
    IncrementalError,
    Node,
    NotStabilizedError,
    Observer,
    ObserverDisposedError,
    Update,
    UpdateKind,
    Var,
)

# Data models
from finder.models import (
    Action,
    Dimensions,
    InputKind,
    Line,
    Model,
    UserInput,
)

# Components
from finder.line_store import LineSnapshot, LineStore
from finder.filtering import AppendOnlyFilter, filter_lines, filtered_node
from finder.selection import clamp, move
from finder.rendering import RenderOutput, render

# Session and settings
from finder.session import FinderSession
from finder.settings import FinderSettings

# CLI entry point
from finder.cli import main

__all__ = [
    # Engine
    "Incremental",
    "Node",
    "Var",
    "BindNode",
    "Observer",
    "Update",
    "UpdateKind",
    "IncrementalError",
    "NotStabilizedError",
    "ObserverDisposedError",
    "CycleError",
    "ForeignNodeError",
    # Models
    "Action",
    "Dimensions",
    "InputKind",
    "Line",
    "Model",
    "UserInput",
    # Components
    "LineSnapshot",
    "LineStore",
    "AppendOnlyFilter",
    "filter_lines",
    "filtered_node",
    "clamp",
    "move",
    "RenderOutput",
    "render",
    # Session
    "FinderSession",
    "FinderSettings",
    # CLI
    "main",
]
