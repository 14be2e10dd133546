"""Interactive voting console backed by an in-memory store.

Run with ``python -m rankr``.
"""

import asyncio

from rich.prompt import Prompt

from rankr.config import load_settings
from rankr.elo_ranker.display import (
    RichEventHandler,
    console,
    create_leaderboard_table,
    create_match_panel,
)
from rankr.elo_ranker.standings import rank_competitors
from rankr.elo_ranker.tiers import TierClassifier
from rankr.logging import configure_logging
from rankr.service import start_session
from rankr.session import LocalIdentityProvider
from rankr.store import InMemoryStore


async def run_console() -> None:
    settings = load_settings()
    configure_logging(cli_mode=True, log_level=settings.log_level)
    classifier = TierClassifier.from_config(settings.ranker)

    store = InMemoryStore(write_latency=0.2)
    session = await start_session(
        settings,
        store,
        LocalIdentityProvider(),
        event_handler=RichEventHandler(console),
    )
    loop = session.loop

    try:
        while True:
            match = await loop.wait_for_match()
            console.print(create_match_panel(match, classifier=classifier))
            choice = await asyncio.to_thread(
                Prompt.ask,
                "Winner ([bold]1[/bold]/[bold]2[/bold], [bold]l[/bold]eaderboard, [bold]q[/bold]uit)",
                choices=["1", "2", "l", "q"],
                show_choices=False,
            )
            if choice == "q":
                break
            if choice == "l":
                standings = rank_competitors(loop.roster.values(), classifier)
                console.print(create_leaderboard_table(standings, top_n=20))
                continue

            winner = match.first if choice == "1" else match.second
            outcome = loop.cast_vote(winner.id)
            if outcome is None:
                console.print("[dim]Still saving the previous vote, try again.[/dim]")
                await asyncio.sleep(settings.ranker.reveal_delay)
                continue
            console.print(create_match_panel(loop.match, outcome, classifier))
    finally:
        await session.close()
        await loop.dispatcher.drain()


def main() -> None:
    try:
        asyncio.run(run_console())
    except KeyboardInterrupt:
        console.print("\n[dim]Bye.[/dim]")


if __name__ == "__main__":
    main()
