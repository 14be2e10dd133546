"""Tier classification by descending rating thresholds."""

from collections.abc import Iterable

from rankr.elo_ranker.models import DEFAULT_TIERS, RankerConfig, Tier


class TierClassifier:
    """Maps ratings to tiers.

    The table is scanned top-down and the first tier whose threshold is
    ``<= rating`` wins, so a rating sitting exactly on a threshold belongs to
    that tier. The last tier has no lower bound, which makes ``classify``
    total over all integers.
    """

    def __init__(self, tiers: Iterable[Tier] = DEFAULT_TIERS):
        # Validation lives on RankerConfig; reuse it for ad-hoc tables
        self.tiers: tuple[Tier, ...] = RankerConfig(tiers=tuple(tiers)).tiers

    @classmethod
    def from_config(cls, config: RankerConfig) -> "TierClassifier":
        return cls(config.tiers)

    def classify(self, rating: int) -> Tier:
        for tier in self.tiers:
            if tier.min_rating is None or tier.min_rating <= rating:
                return tier
        # Unreachable: the last tier is always open-ended
        return self.tiers[-1]

    def label(self, rating: int) -> str:
        return self.classify(rating).label
