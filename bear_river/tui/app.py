"""Textual dashboard - split screen view of a running river."""

from __future__ import annotations
from typing import TYPE_CHECKING

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Container
from textual.widgets import Input, Header, Footer, Static
from textual.binding import Binding

from bear_river.errors import BearRiverError
from bear_river.models.events import EventType
from bear_river.tui.panels import RiverPanel, EventFeed, StatusBar

if TYPE_CHECKING:
    from bear_river.main import River


class RiverApp(App):
    """Dashboard over a river: events on the left, gauges on the right."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-container {
        height: 1fr;
    }

    #feed-container {
        width: 2fr;
        border: solid $primary;
        border-title-color: $text;
    }

    #river-container {
        width: 1fr;
        border: solid $secondary;
        border-title-color: $text;
    }

    #input-area {
        height: 3;
        dock: bottom;
        padding: 0 1;
    }

    #command-input {
        width: 100%;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=True),
        Binding("ctrl+n", "next_epoch", "Next epoch", show=True),
        Binding("ctrl+u", "update", "Update", show=True),
        Binding("escape", "focus_input", "Focus Input", show=False),
    ]

    TITLE = "Bear River"

    def __init__(self, river: "River", **kwargs):
        super().__init__(**kwargs)
        self.river = river
        self._shown_events = 0

    def compose(self) -> ComposeResult:
        """Create the UI layout."""
        yield Header()

        with Horizontal(id="main-container"):
            with Container(id="feed-container"):
                yield EventFeed(id="feed")

            with Container(id="river-container"):
                yield Static("[bold]RIVER[/bold]", id="river-title")
                yield RiverPanel(self.river, id="river")

        with Container(id="input-area"):
            yield Input(placeholder="Enter command (help for a list)...", id="command-input")

        yield StatusBar(id="status")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app starts."""
        self.query_one("#feed-container").border_title = "Events"
        self.query_one("#river-container").border_title = "River"
        self.query_one("#command-input").focus()

        # Replay history already on the log
        self._shown_events = 0
        self._refresh()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle command input."""
        command = event.value.strip()
        if not command:
            return

        event.input.value = ""
        feed = self.query_one("#feed", EventFeed)
        feed.add_player(command)
        self._process_command(command)

    def _process_command(self, command: str) -> None:
        """Run a REPL command and show its output in the feed."""
        from bear_river.main import console, handle_command, print_help

        feed = self.query_one("#feed", EventFeed)
        parts = command.split()

        cmd = parts[0].lower()
        if cmd in ("quit", "exit"):
            self.exit()
            return
        if cmd == "tui":
            feed.write("[yellow]Already in the dashboard[/yellow]")
            return

        try:
            with console.capture() as capture:
                if cmd == "help":
                    print_help()
                else:
                    loaded = handle_command(self.river, parts)
                    if loaded is not None:
                        self._switch_river(loaded)
            feed.add_output(capture.get())
        except BearRiverError as e:
            feed.write(f"[red]Rejected: {e}[/red]")
        except ValueError as e:
            feed.write(f"[red]Bad input: {e}[/red]")
        finally:
            self._refresh()

    def _switch_river(self, river: "River") -> None:
        """Show a loaded river in place of the current one."""
        self.river = river
        self.query_one("#river", RiverPanel).river = river
        self.query_one("#feed", EventFeed).clear()
        self._shown_events = 0

    def _refresh(self) -> None:
        """Show new events and redraw the panels."""
        feed = self.query_one("#feed", EventFeed)
        events = self.river.event_log.get_all()
        for event in events[self._shown_events:]:
            feed.add_event(event)
            if event.event_type == EventType.EXTINCTION:
                feed.add_extinction(event.timestamp)
        self._shown_events = len(events)

        self.query_one("#river", RiverPanel).refresh_display()
        controller = self.river.controller
        self.query_one("#status", StatusBar).update_state(
            controller.current_epoch(),
            self.river.account,
            controller.balance_of(self.river.account),
        )

    def action_next_epoch(self) -> None:
        """Advance one epoch."""
        self.river.advance(1)
        self._refresh()

    def action_update(self) -> None:
        """Run an ecosystem update."""
        self._process_command("update")

    def action_quit(self) -> None:
        """Quit the application."""
        self.exit()

    def action_focus_input(self) -> None:
        """Focus the input field."""
        self.query_one("#command-input").focus()
