"""Main entry point - REPL for running a river economy by hand."""

from __future__ import annotations
import sys
import json
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from thefuzz import fuzz

from bear_river.config import RiverConfig, format_fish, log_level_from_env, to_base_units
from bear_river.errors import BearRiverError
from bear_river.models.events import EventType
from bear_river.models.river_state import StakeOutcome
from bear_river.systems.collaborators import InMemoryFungibleLedger, InMemoryNFTCustody
from bear_river.systems.epoch_clock import ManualClock
from bear_river.systems.event_log import EventLog
from bear_river.systems.staking_controller import StakingController


console = Console()

HISTORY_DIR = Path.home() / ".bear_river"

COMMANDS = [
    "as", "mint-nft", "faucet", "stake", "buy", "claim", "rewards", "update",
    "heal", "advance", "status", "stakers", "events", "event", "report", "set-consumption",
    "set-regen", "save", "load", "saves", "tui", "help", "quit",
]


class River:
    """A river economy wired to in-memory token and NFT collaborators."""

    def __init__(self, config: Optional[RiverConfig] = None, save_dir: Path = Path("saves")):
        self.config = config or RiverConfig.from_env()
        self.clock = ManualClock(start=0)
        self.fungible = InMemoryFungibleLedger()
        self.custody = InMemoryNFTCustody()
        self.event_log = EventLog()
        self.controller = StakingController(
            fungible=self.fungible,
            custody=self.custody,
            clock=self.clock,
            config=self.config,
            event_log=self.event_log,
        )
        self.account = "alice"
        self._save_dir = save_dir

    def advance(self, epochs: int) -> int:
        """Move the clock forward by whole epochs."""
        return self.clock.advance_epochs(epochs, self.config.epoch_length)

    def save(self, filename: str = "quicksave") -> Path:
        """Save the river, the wallets and the clock."""
        save_data = {
            "version": 1,
            "config": self.config.model_dump(mode="json"),
            "clock": self.clock.now(),
            "state": self.controller.export_state(),
            "events": self.event_log.export(),
            "balances": self.fungible.export_balances(),
            "nft_owners": self.custody.export_owners(),
            "account": self.account,
        }

        self._save_dir.mkdir(exist_ok=True)
        filepath = self._save_dir / f"{filename}.json"
        with open(filepath, 'w') as f:
            json.dump(save_data, f, indent=2)
        return filepath

    @classmethod
    def load(cls, filename: str = "quicksave", save_dir: Path = Path("saves")) -> "River":
        """Load a saved river."""
        filepath = save_dir / f"{filename}.json"
        with open(filepath, 'r') as f:
            save_data = json.load(f)

        river = cls(config=RiverConfig(**save_data["config"]), save_dir=save_dir)
        river.clock.set(save_data["clock"])
        river.controller.import_state(save_data["state"])
        river.event_log.import_events(save_data.get("events", []))
        river.fungible.import_balances(save_data.get("balances", {}))
        river.custody.import_owners(save_data.get("nft_owners", {}))
        river.account = save_data.get("account", river.account)
        return river

    def list_saves(self) -> list[str]:
        """List available save files."""
        if not self._save_dir.exists():
            return []
        return [f.stem for f in self._save_dir.glob("*.json")]


def print_help() -> None:
    """Print help information."""
    table = Table(title="Commands", show_header=True, header_style="bold magenta")
    table.add_column("Command", style="cyan")
    table.add_column("Description")

    commands = [
        ("as <account>", "Act as another account"),
        ("mint-nft [n]", "Mint n legacy bear NFTs to the current account"),
        ("faucet <fish>", "Mint fish to the current account"),
        ("stake <id> [id...]", "Stake legacy bear NFTs"),
        ("buy <fish>", "Buy bears with fish (whole bears only)"),
        ("claim", "Claim rewards"),
        ("rewards [account]", "Show claimable rewards"),
        ("update", "Update the ecosystem"),
        ("heal", "Resume staking after an extinction"),
        ("advance <epochs>", "Advance time by whole epochs"),
        ("status", "Show the river"),
        ("stakers", "Show every staker"),
        ("events [n]", "Show recent events (default: 10)"),
        ("event <id>", "Show one event in full"),
        ("report [account]", "Event report grouped by epoch"),
        ("set-consumption <fish>", "Fish eaten per bear per epoch"),
        ("set-regen <rate>", "Regeneration rate (over the scaling factor)"),
        ("save [name]", "Save (default: quicksave)"),
        ("load [name]", "Load (default: quicksave)"),
        ("saves", "List available saves"),
        ("tui", "Open the dashboard"),
        ("help", "Show this help"),
        ("quit", "Exit"),
    ]

    for cmd, desc in commands:
        table.add_row(cmd, desc)

    console.print(table)


def render_status(river: River) -> Panel:
    """Build the river status panel."""
    controller = river.controller
    state = controller.state
    cfg = river.config

    table = Table(show_header=False, box=None)
    table.add_column(style="bold")
    table.add_column()
    supply_color = "green" if state.resource_supply >= controller.pool.heal_threshold() else "yellow"
    if state.resource_supply <= cfg.min_supply:
        supply_color = "red"
    table.add_row("Epoch", str(controller.current_epoch()))
    table.add_row(
        "Fish",
        f"[{supply_color}]{format_fish(state.resource_supply)}[/{supply_color}] / {format_fish(cfg.capacity)}",
    )
    table.add_row("Bears staked", str(state.total_units))
    table.add_row("Distributed", format_fish(state.total_distributed))
    table.add_row("Extinctions", str(len(state.extinction_times)))
    table.add_row("Status", "[red]PAUSED[/red]" if state.paused else "[green]active[/green]")
    table.add_row("Acting as", f"{river.account} ({format_fish(controller.balance_of(river.account))} fish)")

    return Panel(table, title="Bear River", border_style="blue")


def handle_stakers(river: River) -> None:
    """Show every staker."""
    stakers = river.controller.state.stakers
    if not stakers:
        console.print("[dim]No stakers yet[/dim]")
        return

    table = Table(title="Stakers", header_style="bold magenta")
    table.add_column("Account", style="cyan")
    table.add_column("Bears", justify="right")
    table.add_column("Last claim", justify="right")
    table.add_column("Claimable", justify="right")
    table.add_column("Fish balance", justify="right")

    for account, position in sorted(stakers.items()):
        quote = river.controller.calculate_rewards(account)
        claimable = format_fish(quote.amount)
        if quote.capped:
            claimable += " [red](capped)[/red]"
        table.add_row(
            account,
            str(position.units_staked),
            str(position.last_claim_time),
            claimable,
            format_fish(river.controller.balance_of(account)),
        )

    console.print(table)


def handle_events(river: River, parts: list[str]) -> None:
    """Show recent events."""
    count = int(parts[1]) if len(parts) > 1 else 10
    events = river.event_log.get_recent(count)
    if not events:
        console.print("[dim]No events recorded[/dim]")
        return

    styles = {
        EventType.EXTINCTION: "bold red",
        EventType.CONTRACT_PAUSED: "yellow",
        EventType.CLAIM_REWARDS: "green",
    }
    for event in events:
        style = styles.get(event.event_type, "white")
        console.print(f"[{style}]{event.summary()}[/{style}]")


def handle_command(river: River, parts: list[str]) -> Optional[River]:
    """Run one REPL command against the river.

    Returns the freshly loaded river after a successful ``load``, otherwise None.
    """
    cmd = parts[0].lower()
    controller = river.controller

    if cmd == "as":
        if len(parts) < 2:
            console.print("[red]Usage: as <account>[/red]")
            return
        river.account = parts[1]
        console.print(f"[dim]Now acting as {river.account}[/dim]")

    elif cmd == "mint-nft":
        count = int(parts[1]) if len(parts) > 1 else 1
        token_ids = river.custody.mint(river.account, count)
        console.print(f"[green]Minted bears {', '.join(f'#{t}' for t in token_ids)} to {river.account}[/green]")

    elif cmd == "faucet":
        if len(parts) < 2:
            console.print("[red]Usage: faucet <fish>[/red]")
            return
        river.fungible.mint(river.account, to_base_units(parts[1]))
        console.print(f"[green]{river.account} now holds {format_fish(controller.balance_of(river.account))} fish[/green]")

    elif cmd == "stake":
        if len(parts) < 2:
            owned = river.custody.tokens_of(river.account)
            console.print("[red]Usage: stake <id> [id...][/red]")
            console.print(f"[yellow]Owned: {', '.join(map(str, owned)) or 'none'}[/yellow]")
            return
        outcome = controller.stake_legacy_nfts(river.account, [int(p) for p in parts[1:]])
        report_stake(outcome)

    elif cmd == "buy":
        if len(parts) < 2:
            console.print("[red]Usage: buy <fish>[/red]")
            return
        outcome = controller.stake_with_erc20(river.account, to_base_units(parts[1]))
        report_stake(outcome)

    elif cmd == "claim":
        outcome = controller.claim_rewards(river.account)
        if outcome.extinction:
            console.print("[bold red]Extinction! The river collapsed during the update.[/bold red]")
        if outcome.amount:
            console.print(f"[green]Claimed {format_fish(outcome.amount)} fish[/green]")
        else:
            console.print("[dim]Nothing to claim[/dim]")

    elif cmd == "rewards":
        account = parts[1] if len(parts) > 1 else river.account
        quote = controller.calculate_rewards(account)
        line = f"{account} can claim {format_fish(quote.amount)} fish"
        if quote.capped:
            line += f" [red](capped at the extinction at {quote.capping_extinction_time})[/red]"
        console.print(line)

    elif cmd == "update":
        outcome = controller.update_ecosystem()
        if outcome.extinction:
            console.print("[bold red]Extinction! Every bear is gone and staking is paused.[/bold red]")
        else:
            console.print(
                f"[dim]{outcome.elapsed_epochs} epoch(s): -{format_fish(outcome.consumption)} "
                f"+{format_fish(outcome.regeneration)}[/dim]"
            )

    elif cmd == "heal":
        controller.heal()
        console.print("[green]The river has healed. Staking resumed.[/green]")

    elif cmd == "advance":
        epochs = int(parts[1]) if len(parts) > 1 else 1
        if epochs < 1:
            console.print("[red]Epochs must be at least 1[/red]")
            return
        river.advance(epochs)
        console.print(f"[bold]Time passes... now epoch {controller.current_epoch()}[/bold]")

    elif cmd == "status":
        console.print(render_status(river))

    elif cmd == "stakers":
        handle_stakers(river)

    elif cmd == "events":
        handle_events(river, parts)

    elif cmd == "event":
        if len(parts) < 2:
            console.print("[red]Usage: event <id>[/red]")
            return
        event = river.event_log.find(parts[1])
        if event is None:
            console.print(f"[red]No event with id {parts[1]}[/red]")
            return
        console.print(Panel(event.detailed(), border_style="cyan"))

    elif cmd == "report":
        actor = parts[1] if len(parts) > 1 else None
        console.print(river.event_log.generate_report(actor=actor), markup=False)

    elif cmd == "set-consumption":
        if len(parts) < 2:
            console.print("[red]Usage: set-consumption <fish>[/red]")
            return
        controller.set_unit_cost_per_epoch(to_base_units(parts[1]))
        console.print("[dim]Consumption updated[/dim]")

    elif cmd == "set-regen":
        if len(parts) < 2:
            console.print("[red]Usage: set-regen <rate>[/red]")
            return
        controller.set_regeneration_rate(int(parts[1]))
        console.print("[dim]Regeneration rate updated[/dim]")

    elif cmd == "save":
        name = parts[1] if len(parts) > 1 else "quicksave"
        console.print(f"[green]Saved to {river.save(name)}[/green]")

    elif cmd == "load":
        name = parts[1] if len(parts) > 1 else "quicksave"
        try:
            loaded = River.load(name, save_dir=river._save_dir)
        except FileNotFoundError:
            console.print(f"[red]Save file not found: {name}[/red]")
            return None
        console.print(f"[green]Loaded {name}[/green]")
        return loaded

    elif cmd == "saves":
        saves = river.list_saves()
        if saves:
            console.print("[bold]Available saves:[/bold]")
            for s in saves:
                console.print(f"  • {s}")
        else:
            console.print("[dim]No saves found[/dim]")

    else:
        suggestion = fuzzy_match_command(cmd)
        if suggestion:
            console.print(f"[yellow]Unknown command '{cmd}'. Did you mean '{suggestion}'?[/yellow]")
        else:
            console.print(f"[red]Unknown command '{cmd}'. Type 'help' for commands.[/red]")


def fuzzy_match_command(query: str, threshold: int = 60) -> Optional[str]:
    """Find the command closest to a mistyped one."""
    best_match = None
    best_score = 0
    for command in COMMANDS:
        score = fuzz.ratio(query.lower(), command)
        if score > best_score and score >= threshold:
            best_score = score
            best_match = command
    return best_match


def report_stake(outcome: StakeOutcome) -> None:
    """Print the result of a stake request."""
    if outcome.rewards_settled:
        console.print(f"[green]Settled {format_fish(outcome.rewards_settled)} fish of rewards first[/green]")
    if not outcome.applied:
        console.print("[bold red]Extinction hit before the stake landed. Nothing was deposited.[/bold red]")
        return
    console.print(f"[green]Staked {outcome.units} bear(s); now {outcome.units_staked}[/green]")


def configure_logging() -> None:
    """Send log records through rich."""
    logging.basicConfig(
        level=log_level_from_env(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    """Main entry point."""
    configure_logging()

    console.print(Panel(
        "[bold magenta]Bear River[/bold magenta]\n"
        "[dim]Bears eat fish. Fish grow back. Usually.[/dim]",
        border_style="magenta",
    ))

    HISTORY_DIR.mkdir(exist_ok=True)
    session = PromptSession(
        history=FileHistory(str(HISTORY_DIR / "command_history")),
        auto_suggest=AutoSuggestFromHistory(),
    )

    # Check for command line arguments
    if len(sys.argv) > 1:
        if sys.argv[1] == "load" and len(sys.argv) > 2:
            try:
                river = River.load(sys.argv[2])
            except FileNotFoundError:
                console.print(f"[red]Save file not found: {sys.argv[2]}[/red]")
                sys.exit(1)
        else:
            console.print("[yellow]Usage: bear-river [load <savename>][/yellow]")
            sys.exit(1)
    else:
        try:
            river = River()
        except (BearRiverError, ValueError) as e:
            console.print(f"[red]Invalid configuration: {e}[/red]")
            sys.exit(1)

    console.print(render_status(river))
    console.print("\n[dim]Type 'help' for commands[/dim]\n")

    # Main REPL loop
    while True:
        try:
            command = session.prompt(f"[{river.account}] > ")

            if not command.strip():
                continue

            parts = command.strip().split()
            cmd = parts[0].lower()

            if cmd in ("quit", "exit"):
                console.print("[dim]The bears go back to sleep.[/dim]")
                break

            elif cmd == "help":
                print_help()

            elif cmd == "tui":
                from bear_river.tui.app import RiverApp
                RiverApp(river=river).run()

            else:
                river = handle_command(river, parts) or river

        except BearRiverError as e:
            console.print(f"[red]Rejected: {e}[/red]")

        except ValueError as e:
            console.print(f"[red]Bad input: {e}[/red]")

        except KeyboardInterrupt:
            console.print("\n[dim]Type 'quit' to exit[/dim]")

        except EOFError:
            console.print("\n[dim]The bears go back to sleep.[/dim]")
            break


if __name__ == "__main__":
    main()
