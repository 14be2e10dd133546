"""Leaderboard ordering."""

from collections.abc import Iterable

from pydantic import BaseModel

from rankr.elo_ranker.models import Competitor, Tier
from rankr.elo_ranker.tiers import TierClassifier


class Standing(BaseModel):
    """One leaderboard row."""
    rank: int
    competitor: Competitor
    tier: Tier


def rank_competitors(
    competitors: Iterable[Competitor],
    classifier: TierClassifier | None = None
) -> list[Standing]:
    """Sort competitors by rating (highest first) and attach their tiers.

    Equal ratings are ordered by display name so the table is stable.
    """
    classifier = classifier or TierClassifier()
    ordered = sorted(competitors, key=lambda c: (-c.rating, c.display_name))
    return [
        Standing(rank=i, competitor=c, tier=classifier.classify(c.rating))
        for i, c in enumerate(ordered, 1)
    ]
