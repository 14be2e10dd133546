"""Pairing strategies for drawing the next match."""

import random
from collections.abc import Sequence
from typing import Protocol

from rankr.elo_ranker.errors import InsufficientRosterError
from rankr.elo_ranker.models import Competitor, Match


class PairingStrategy(Protocol):
    """Protocol for pairing strategies."""

    def select_match(self, competitors: Sequence[Competitor]) -> Match:
        """Select the next match from the roster.

        Args:
            competitors: Current roster members

        Returns:
            A Match between two distinct competitors

        Raises:
            InsufficientRosterError: if fewer than two competitors are given
        """
        ...


class RandomPairing:
    """Uniform random pairing with no memory of earlier matches.

    The first index is drawn uniformly; the second is redrawn until it
    differs from the first, which keeps it uniform over the rest of the
    roster. Repeats across rounds are expected.
    """

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    def select_match(self, competitors: Sequence[Competitor]) -> Match:
        if len(competitors) < 2:
            raise InsufficientRosterError(len(competitors))

        idx1 = self.rng.randrange(len(competitors))
        idx2 = self.rng.randrange(len(competitors))
        while idx2 == idx1:
            idx2 = self.rng.randrange(len(competitors))

        return Match(first=competitors[idx1], second=competitors[idx2])
