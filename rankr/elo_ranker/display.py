"""Rich UI components for the voting console."""

from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from rankr.elo_ranker.models import Competitor, Match, Outcome, Phase
from rankr.elo_ranker.standings import Standing
from rankr.elo_ranker.tiers import TierClassifier

# Shared console instance
console = Console()

HIDDEN = "????"


def create_leaderboard_table(standings: list[Standing], top_n: int | None = None) -> Table:
    """Create a Rich table of the current standings."""
    table = Table(
        title="[bold cyan]Leaderboard[/bold cyan]",
        box=box.ROUNDED,
        show_lines=False,
        header_style="bold magenta",
        title_justify="left",
    )

    table.add_column("Rank", style="dim", width=5, justify="center")
    table.add_column("Tier", width=5, justify="center")
    table.add_column("Name", style="cyan", max_width=40, overflow="ellipsis")
    table.add_column("Rating", style="yellow", width=8, justify="right")
    table.add_column("W - L", style="green", width=9, justify="center")

    shown = standings if top_n is None else standings[:top_n]
    for standing in shown:
        c = standing.competitor
        if standing.rank == 1:
            rank_str = "[bold gold1]🥇 1[/bold gold1]"
        elif standing.rank == 2:
            rank_str = "[bold grey74]🥈 2[/bold grey74]"
        elif standing.rank == 3:
            rank_str = "[bold orange3]🥉 3[/bold orange3]"
        else:
            rank_str = f"[dim]{standing.rank}[/dim]"

        table.add_row(
            rank_str,
            Text(standing.tier.label, style=standing.tier.style),
            c.display_name,
            str(c.rating),
            f"{c.wins} - {c.losses}",
        )

    if len(shown) < len(standings):
        table.add_row("...", "", f"[dim]and {len(standings) - len(shown)} more[/dim]", "", "")

    return table


def _competitor_card(
    slot: int,
    competitor: Competitor,
    outcome: Outcome | None,
    classifier: TierClassifier
) -> Panel:
    # Rating, tier and record stay hidden; only the delta is revealed
    content = Text(justify="center")
    content.append(f"{competitor.display_name}\n\n", style="bold white")
    content.append("Current rating\n", style="dim")
    content.append(f"{HIDDEN}\n", style="grey50")

    border_style = "grey37"
    if outcome is not None:
        delta = outcome.delta_for(competitor.id)
        sign = "+" if delta > 0 else ""
        content.append(f"\n{sign}{delta}", style="bold green" if delta > 0 else "bold red")
        border_style = classifier.classify(competitor.rating).style
    else:
        content.append(f"\n[{slot}] select winner", style="dim")

    return Panel(content, border_style=border_style, box=box.ROUNDED, width=36)


def create_match_panel(
    match: Match | None,
    outcome: Outcome | None = None,
    classifier: TierClassifier | None = None
) -> Panel:
    """Create a panel showing the current match, and its deltas once revealed."""
    classifier = classifier or TierClassifier()
    if match is None:
        return Panel(
            "[dim]Waiting for the roster...[/dim]",
            title="[bold]Current Match[/bold]",
            border_style="dim",
            box=box.ROUNDED,
        )

    table = Table.grid(padding=(0, 2))
    table.add_row(
        _competitor_card(1, match.first, outcome, classifier),
        Text("\nVS\n", style="bold yellow", justify="center"),
        _competitor_card(2, match.second, outcome, classifier),
    )

    return Panel(
        table,
        title="[bold]Result[/bold]" if outcome else "[bold]Who wins?[/bold]",
        border_style="green" if outcome else "yellow",
        box=box.ROUNDED,
    )


class RichEventHandler:
    """Event handler that reports session events on a Rich console."""

    def __init__(self, out: Console | None = None):
        self.console = out or console

    def on_phase_change(self, previous: Phase, current: Phase, **kwargs: Any) -> None:
        if current is Phase.AWAITING_ROSTER:
            self.console.print("[dim]Loading roster...[/dim]")

    def on_roster_updated(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_match_start(self, *args: Any, **kwargs: Any) -> None:
        pass

    def on_outcome(self, outcome: Outcome, **kwargs: Any) -> None:
        self.console.print("[bold green]Vote recorded[/bold green]")

    def on_mutation_failed(self, outcome: Outcome, error: BaseException, **kwargs: Any) -> None:
        self.console.print(f"[yellow]Could not save the last vote ({error}); it may not count.[/yellow]")

    def on_subscription_error(self, error: BaseException, **kwargs: Any) -> None:
        self.console.print(f"[yellow]Lost connection to the store ({error}), reconnecting...[/yellow]")

    def on_roster_seeded(self, count: int, **kwargs: Any) -> None:
        self.console.print(f"[dim]Seeded {count} competitors.[/dim]")
