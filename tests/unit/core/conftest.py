"""Shared fixtures and factories for core unit tests."""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from rankr.elo_ranker.models import Competitor, RankerConfig
from rankr.models import Snapshot, StoreDocument


def make_competitor(
    competitor_id: str = "A",
    rating: int = 1200,
    wins: int = 0,
    losses: int = 0,
    name: str | None = None,
) -> Competitor:
    """Factory to create a Competitor for testing."""
    return Competitor(
        id=competitor_id,
        display_name=name or f"Player {competitor_id}",
        rating=rating,
        wins=wins,
        losses=losses,
    )


def make_document(
    doc_id: str,
    rating: Any = 1200,
    wins: Any = 0,
    losses: Any = 0,
    name: str | None = None,
) -> StoreDocument:
    """Factory to create a stored competitor document."""
    return StoreDocument(
        id=doc_id,
        fields={
            "id": doc_id,
            "name": name or f"Player {doc_id}",
            "elo": rating,
            "wins": wins,
            "losses": losses,
            "matches": (wins or 0) + (losses or 0),
        },
    )


def make_snapshot(*documents: StoreDocument) -> Snapshot:
    return Snapshot(documents=list(documents))


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the event loop until ``predicate`` holds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.001)


class RecordingEventHandler:
    """Event handler that records every call for assertions."""

    def __init__(self):
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def of(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for event, kwargs in self.calls if event == name]

    def __getattr__(self, name: str) -> Callable[..., None]:
        if not name.startswith("on_"):
            raise AttributeError(name)

        def record(**kwargs: Any) -> None:
            self.calls.append((name, kwargs))

        return record


@pytest.fixture
def fast_config() -> RankerConfig:
    """Config with short timings so reveal and resubscribe finish quickly."""
    return RankerConfig(collection_key="players", reveal_delay=0.05, resubscribe_delay=0.01)


@pytest.fixture
def events() -> RecordingEventHandler:
    return RecordingEventHandler()
