#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Main TUI application for the line finder.

Shows the lines read so far, narrowed by the filter typed at the prompt:
- Printable keys extend the filter, backspace shortens it
- Up/down move the selection, enter accepts it, ctrl+c quits
- A timer tick drains new input lines, reads the terminal size, advances
  the clock, and stabilizes the session; the screen is repainted only
  when the render output changed
"""

from datetime import datetime, timezone
from typing import NamedTuple, Optional

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static

try:
    from finder.debug_logger import get_logger
    from finder.models import Action, Dimensions, InputKind, UserInput
    from finder.rendering import RenderOutput
    from finder.session import FinderSession
    from finder.settings import FinderSettings
    from finder.tui.line_source import LineSource
    from finder.tui.painter import paint
except ImportError:
    from ..debug_logger import get_logger
    from ..models import Action, Dimensions, InputKind, UserInput
    from ..rendering import RenderOutput
    from ..session import FinderSession
    from ..settings import FinderSettings
    from .line_source import LineSource
    from .painter import paint


class RunResult(NamedTuple):
    """How a finder run ended."""

    return_code: int
    selected: Optional[str]
    failure: Optional[BaseException]


class FinderApp(App):
    """
    Textual application hosting one FinderSession.

    Exits with the selected line's text on enter, or None on ctrl+c.
    """

    TITLE = "finder"
    CSS_PATH = "styles/app.tcss"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("enter", "accept", "Accept", priority=True),
        Binding("ctrl+c", "interrupt", "Quit", priority=True),
        Binding("up", "selection_up", "Up", show=False, priority=True),
        Binding("down", "selection_down", "Down", show=False, priority=True),
        Binding("backspace", "backspace", "Delete", show=False, priority=True),
    ]

    def __init__(
        self,
        source: Optional[LineSource] = None,
        settings: Optional[FinderSettings] = None,
    ) -> None:
        """
        Initialize the app.

        Args:
            source: Where input lines come from (optional, no lines if None)
            settings: Runtime settings (optional, defaults if None)
        """
        super().__init__()
        self.source = source
        self.settings = settings or FinderSettings()
        self.debug_logger = get_logger()
        self.session = FinderSession(logger=self.debug_logger)
        self.failure: Optional[BaseException] = None
        self.last_output: Optional[RenderOutput] = None
        self._tick_handle = None
        self._session_over = False

    def compose(self) -> ComposeResult:
        """Compose the app layout."""
        yield Static("", id="view")

    def on_mount(self) -> None:
        """Start reading input and ticking."""
        source_name = self.source.name if self.source else "none"
        self.debug_logger.session_start(source_name, self.settings.tick_interval)
        if self.settings.initial_filter:
            self.session.set_filter(self.settings.initial_filter)
        if self.source is not None:
            self.source.start()
        self._tick_handle = self.set_interval(self.settings.tick_interval, self._on_tick)
        self._on_tick()

    def _on_tick(self) -> None:
        """Timer callback - feed pending input into the session and repaint."""
        if self._session_over:
            return

        if self.source is not None:
            batch = self.source.drain()
            for line in batch.lines:
                self.session.handle_line(line)
            if batch.error is not None:
                self._fail(batch.error)
                return
            if batch.closed:
                self.session.handle_closed()
                if self.settings.exit_on_close:
                    self._finish(None, "input_closed")
                    return

        dim = Dimensions(self.size.width, self.size.height)
        output = self.session.tick(datetime.now(timezone.utc), dim)
        if output is not None:
            self._paint(output)

    def _paint(self, output: RenderOutput) -> None:
        self.last_output = output
        view = self.query_one("#view", Static)
        view.update(paint(output.layout, self.settings.highlight_style))

    def on_key(self, event: events.Key) -> None:
        """Printable keys extend the filter; anything else is ignored."""
        if event.is_printable and event.character:
            self._dispatch(UserInput.of_char(event.character))
        else:
            self._dispatch(UserInput(InputKind.OTHER))
        event.stop()

    def action_accept(self) -> None:
        self._dispatch(UserInput(InputKind.RETURN))

    def action_interrupt(self) -> None:
        self._dispatch(UserInput(InputKind.INTERRUPT))

    def action_selection_up(self) -> None:
        self._dispatch(UserInput(InputKind.UP))

    def action_selection_down(self) -> None:
        self._dispatch(UserInput(InputKind.DOWN))

    def action_backspace(self) -> None:
        self._dispatch(UserInput(InputKind.BACKSPACE))

    def _dispatch(self, event: UserInput) -> None:
        if self._session_over:
            return
        action = self.session.handle_input(event)
        if action is Action.EXIT:
            self._finish(None, "interrupt")
        elif action is Action.EXIT_AND_PRINT:
            # Accept what the current filter selects, not the last painted frame
            self.session.stabilize()
            self._finish(self.session.selected_text, "accept")

    def _stop_ticking(self) -> None:
        self._session_over = True
        if self._tick_handle is not None:
            self._tick_handle.stop()

    def _finish(self, result: Optional[str], reason: str) -> None:
        self._stop_ticking()
        self.debug_logger.session_end(reason, len(self.session.store), result is not None)
        self.exit(result)

    def _fail(self, error: BaseException) -> None:
        """Input stream failure: remember it and leave with return code 1."""
        self.failure = error
        self._stop_ticking()
        self.debug_logger.error("read_input", f"{type(error).__name__}: {error}")
        self.debug_logger.session_end("error", len(self.session.store), False)
        self.exit(None, return_code=1)


def run_app(
    source: Optional[LineSource] = None,
    settings: Optional[FinderSettings] = None,
) -> RunResult:
    """
    Run the TUI application until the user accepts or quits.

    Args:
        source: Input line source (optional)
        settings: Runtime settings (optional)

    Returns:
        RunResult with the return code, the accepted line, and any
        input failure
    """
    app = FinderApp(source=source, settings=settings)
    selected = app.run()
    return RunResult(app.return_code or 0, selected, app.failure)


if __name__ == "__main__":
    run_app()
