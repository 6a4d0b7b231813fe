#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Finder session: the application state held as an incremental graph.

Each piece of state is its own engine variable, so an event only dirties
the nodes that depend on it:

    lines ──┬─> filtered ─> match count ─> selection ─┬─> body ──┐
    filter ─┘                                  ▲      │          │
    selected ──────────────────────────────────┘      │          │
    dim ──────────────────────────────────────────────┘          ├─> output
    clock ─> elapsed ─> elapsed text ─┬─> status ────────────────┤
    lines ─> total ───────────────────┘                          │
    filter ─> prompt ────────────────────────────────────────────┘

A clock tick recomputes elapsed, status, and output, but neither the
filter nor the body.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

try:
    from finder.debug_logger import DebugLogger, get_logger
    from finder.filtering import filtered_node
    from finder.incremental import BindNode, Incremental, Node, Observer, Update, Var
    from finder.line_store import LineSnapshot, LineStore
    from finder.models import Action, Dimensions, InputKind, Line, Model, UserInput
    from finder.rendering import (
        RenderOutput,
        compose,
        format_elapsed,
        render_body,
        render_prompt,
        render_status,
    )
    from finder.selection import DOWN, UP, clamp, move, selected_line
except ImportError:
    from .debug_logger import DebugLogger, get_logger
    from .filtering import filtered_node
    from .incremental import BindNode, Incremental, Node, Observer, Update, Var
    from .line_store import LineSnapshot, LineStore
    from .models import Action, Dimensions, InputKind, Line, Model, UserInput
    from .rendering import (
        RenderOutput,
        compose,
        format_elapsed,
        render_body,
        render_prompt,
        render_status,
    )
    from .selection import DOWN, UP, clamp, move, selected_line


@dataclass
class SessionGraph:
    """The session's nodes, kept together for inspection."""

    lines: Var
    filter: Var
    selected: Var
    dim: Var
    filtered: BindNode
    match_count: Node
    selection: Node
    selected_line: Node
    body: Node
    elapsed: Node
    elapsed_text: Node
    total: Node
    status: Node
    prompt: Node
    output: Node


class FinderSession:
    """
    Session state and event handling for one run of the finder.

    The driver loop feeds events in (handle_line, handle_input, set_dim)
    and calls tick() on a timer; tick() returns a new RenderOutput only
    when something on screen changed.
    """

    def __init__(
        self,
        engine: Optional[Incremental] = None,
        start: Optional[datetime] = None,
        logger: Optional[DebugLogger] = None,
    ) -> None:
        self.start = start or datetime.now(timezone.utc)
        self._logger = logger or get_logger()
        self.engine = engine or Incremental(now=self.start, logger=self._logger)
        self.store = LineStore(self.engine)
        self.input_closed = False
        self._pending_render: Optional[RenderOutput] = None
        self._last_selected: Optional[Line] = None

        self.graph = self._build_graph()

        self._output = self.engine.observe(self.graph.output)
        self._output.on_update(self._on_output)
        self._filtered = self.engine.observe(self.graph.filtered)
        self._selection = self.engine.observe(self.graph.selection)

    def _build_graph(self) -> SessionGraph:
        engine = self.engine
        start = self.start

        lines = self.store.node
        needle = engine.var("", name="filter")
        selected = engine.var(0, name="selected")
        dim = engine.var(Dimensions(), name="dim")

        filtered = filtered_node(engine, lines, needle)
        match_count = engine.map(filtered, len, name="match_count")
        selection = engine.map2(selected, match_count, clamp, name="selection")
        current = engine.map2(filtered, selection, selected_line, name="selected_line")
        body = engine.map_n((filtered, selection, dim, needle), render_body, name="body")

        elapsed = engine.map(engine.now, lambda now: now - start, name="elapsed")
        elapsed_text = engine.map(elapsed, format_elapsed, name="elapsed_text")
        total = engine.map(lines, len, name="total")
        status = engine.map2(elapsed_text, total, render_status, name="status")
        prompt = engine.map(needle, render_prompt, name="prompt")

        output = engine.map_n((body, status, prompt, current), compose, name="output")

        return SessionGraph(
            lines=lines,
            filter=needle,
            selected=selected,
            dim=dim,
            filtered=filtered,
            match_count=match_count,
            selection=selection,
            selected_line=current,
            body=body,
            elapsed=elapsed,
            elapsed_text=elapsed_text,
            total=total,
            status=status,
            prompt=prompt,
            output=output,
        )

    def _on_output(self, update: Update) -> None:
        self._pending_render = update.new
        self._last_selected = update.new.selected

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def handle_line(self, text: str) -> int:
        return self.store.append(text)

    def handle_closed(self) -> None:
        if not self.input_closed:
            self.input_closed = True
            self._logger.input_closed(len(self.store))

    def handle_input(self, event: UserInput) -> Optional[Action]:
        """
        Apply a keyboard event.

        Returns the action the driver should take, or None to keep going.
        """
        kind = event.kind
        if kind is InputKind.INTERRUPT:
            return Action.EXIT
        if kind is InputKind.RETURN:
            return Action.EXIT_AND_PRINT
        if kind is InputKind.CHAR:
            self.graph.filter.set(self.graph.filter.value + event.char)
        elif kind is InputKind.BACKSPACE:
            self.graph.filter.set(self.graph.filter.value[:-1])
        elif kind is InputKind.UP:
            self._move_selection(UP)
        elif kind is InputKind.DOWN:
            self._move_selection(DOWN)
        return None

    def _move_selection(self, delta: int) -> None:
        """
        Move the stored selection, clamped to the current match count.

        Stabilizes first so lines that arrived since the last tick count
        towards the bound. The pending render output is kept for the next
        take_render().
        """
        self.stabilize()
        count = len(self._filtered.value)
        self.graph.selected.set(move(self.graph.selected.value, delta, count))

    def set_filter(self, text: str) -> None:
        """Replace the whole filter string (e.g. a starting query)."""
        self.graph.filter.set(text)

    def set_dim(self, dim: Dimensions) -> None:
        self.graph.dim.set(dim)

    # -------------------------------------------------------------------------
    # Stabilization
    # -------------------------------------------------------------------------

    def stabilize(self) -> int:
        """Stabilize the graph and re-clamp the stored selection."""
        with self._logger.timer("stabilize", {"lines": len(self.store)}):
            stamp = self.engine.stabilize()
        clamped = self._selection.value
        target = 0 if clamped is None else clamped
        if self.graph.selected.value != target:
            self.graph.selected.set(target)
        return stamp

    def tick(self, now: Optional[datetime] = None, dim: Optional[Dimensions] = None) -> Optional[RenderOutput]:
        """
        One render tick: record the terminal size, advance the clock,
        stabilize, and hand back the new render output if there is one.
        """
        if dim is not None:
            self.set_dim(dim)
        self.engine.advance_clock(now or datetime.now(timezone.utc))
        self.stabilize()
        return self.take_render()

    def take_render(self) -> Optional[RenderOutput]:
        """Return the pending render output once, then None until it changes."""
        output, self._pending_render = self._pending_render, None
        return output

    # -------------------------------------------------------------------------
    # State as of the last stabilization
    # -------------------------------------------------------------------------

    @property
    def filtered(self) -> LineSnapshot:
        return self._filtered.value

    @property
    def filtered_texts(self) -> List[str]:
        return self.filtered.texts

    @property
    def selection(self) -> Optional[int]:
        return self._selection.value

    @property
    def selected_line(self) -> Optional[Line]:
        return self._last_selected

    @property
    def selected_text(self) -> Optional[str]:
        line = self._last_selected
        return line.text if line is not None else None

    @property
    def output(self) -> RenderOutput:
        return self._output.value

    @property
    def output_observer(self) -> Observer:
        return self._output

    @property
    def model(self) -> Model:
        """Snapshot of the latest set values (not necessarily stabilized)."""
        return Model(
            lines=self.store.snapshot(),
            start=self.start,
            filter=self.graph.filter.value,
            selected=self.graph.selected.value,
            dim=self.graph.dim.value,
        )

    def __repr__(self) -> str:
        return f"FinderSession(lines={len(self.store)}, filter={self.graph.filter.value!r})"
