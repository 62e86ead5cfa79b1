"""TUI panel components - river gauges, event feed and status bar."""

from __future__ import annotations
from typing import TYPE_CHECKING

from textual.widgets import Static, RichLog
from rich.panel import Panel
from rich.text import Text

from bear_river.config import format_fish
from bear_river.models.events import Event, EventType

if TYPE_CHECKING:
    from bear_river.main import River


class RiverPanel(Static):
    """Right panel showing the fish supply and staking totals."""

    DEFAULT_CSS = """
    RiverPanel {
        width: 100%;
        height: 100%;
        padding: 0 1;
    }
    """

    def __init__(self, river: "River" = None, **kwargs):
        super().__init__(**kwargs)
        self.river = river

    def refresh_display(self) -> None:
        """Refresh the river display."""
        if not self.river:
            self.update("[dim]No river[/dim]")
            return

        controller = self.river.controller
        state = controller.state
        cfg = self.river.config

        # Supply gauge
        filled = int(10 * state.resource_supply // cfg.capacity)
        bar = "█" * filled + "░" * (10 - filled)
        if state.paused:
            color = "red"
        elif state.resource_supply >= controller.pool.heal_threshold():
            color = "green"
        else:
            color = "yellow"

        lines = [
            f"[{color}]{bar}[/{color}]",
            f"[bold]{format_fish(state.resource_supply, 2)}[/bold] fish",
            f"[dim]of {format_fish(cfg.capacity, 0)}[/dim]",
            "",
            f"Bears: [bold]{state.total_units}[/bold]",
            f"Stakers: {len(state.stakers)}",
            f"Distributed: {format_fish(state.total_distributed, 2)}",
            f"Extinctions: {len(state.extinction_times)}",
            "",
        ]

        if state.paused:
            lines.append("[bold red]PAUSED[/bold red]")
            if controller.pool.can_heal():
                lines.append("[green]Ready to heal[/green]")
        else:
            lines.append("[green]Active[/green]")

        self.update("\n".join(lines))


class EventFeed(RichLog):
    """Left panel showing river events and command output."""

    DEFAULT_CSS = """
    EventFeed {
        width: 100%;
        height: 100%;
        border: none;
        scrollbar-gutter: stable;
    }
    """

    STYLES = {
        EventType.EXTINCTION: "bold red",
        EventType.CONTRACT_PAUSED: "yellow",
        EventType.CLAIM_REWARDS: "green",
        EventType.STAKE: "cyan",
    }

    def __init__(self, **kwargs):
        super().__init__(highlight=True, markup=True, wrap=True, **kwargs)

    def add_event(self, event: Event) -> None:
        """Add a river event."""
        style = self.STYLES.get(event.event_type, "white")
        self.write(f"[{style}]{event.summary()}[/{style}]")

    def add_player(self, text: str) -> None:
        """Add player input for display."""
        self.write(f"[bold green]>[/bold green] {text}")

    def add_output(self, ansi: str) -> None:
        """Add captured command output."""
        if ansi.strip():
            self.write(Text.from_ansi(ansi.rstrip()))

    def add_extinction(self, timestamp: int) -> None:
        """Add a prominent extinction notice."""
        self.write(Panel(
            f"The river ran dry at {timestamp}.\nEvery bear is gone. Staking is paused.",
            title="Extinction",
            border_style="red",
            padding=(0, 1),
        ))


class StatusBar(Static):
    """Bottom status bar showing epoch and current account."""

    DEFAULT_CSS = """
    StatusBar {
        height: 1;
        dock: bottom;
        background: $surface;
        padding: 0 1;
    }
    """

    def update_state(self, epoch: int, account: str, balance: int) -> None:
        """Update the status bar with current state."""
        self.update(
            f"[bold]Epoch {epoch}[/bold] │ {account} │ {format_fish(balance, 2)} fish"
        )
