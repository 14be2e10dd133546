"""Elo rating core: rating model, tiers, matchmaking and reconciliation."""

from rankr.elo_ranker.elo import compute_update, expected_score
from rankr.elo_ranker.errors import InsufficientRosterError, InvalidVoteError, RankerError
from rankr.elo_ranker.models import Competitor, Match, Outcome, Phase, RankerConfig, RatingUpdate, Tier
from rankr.elo_ranker.outcome import MutationDispatcher, OutcomeApplier
from rankr.elo_ranker.pairing import RandomPairing
from rankr.elo_ranker.reconcile import ReconciliationLoop
from rankr.elo_ranker.tiers import TierClassifier

__all__ = [
    "compute_update",
    "expected_score",
    "Competitor",
    "Match",
    "Outcome",
    "Phase",
    "RankerConfig",
    "RatingUpdate",
    "Tier",
    "TierClassifier",
    "RandomPairing",
    "OutcomeApplier",
    "MutationDispatcher",
    "ReconciliationLoop",
    "RankerError",
    "InsufficientRosterError",
    "InvalidVoteError",
]
