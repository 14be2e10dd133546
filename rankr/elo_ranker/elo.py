"""Pure Elo rating calculations."""

import math

from rankr.elo_ranker.models import RatingUpdate

# Rating gaps beyond this are treated as this; 10**300 is still a finite float
_MAX_RATING_GAP = 400 * 300


def expected_score(rating_a: int, rating_b: int) -> float:
    """Calculate expected score for side A against side B.

    Uses the standard Elo formula: E_A = 1 / (1 + 10^((R_B - R_A) / 400))

    Args:
        rating_a: Rating of side A
        rating_b: Rating of side B

    Returns:
        Expected score (0.0 to 1.0) for side A
    """
    gap = max(-_MAX_RATING_GAP, min(_MAX_RATING_GAP, rating_b - rating_a))
    return 1.0 / (1.0 + math.pow(10.0, gap / 400.0))


def round_rating(value: float) -> int:
    """Round half toward positive infinity (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def compute_update(winner_rating: int, loser_rating: int, k_factor: float = 32.0) -> RatingUpdate:
    """Compute both sides' new ratings after a decided match.

    Each side is rounded independently, so ``winner_delta + loser_delta``
    can be off from zero by one point when ``k_factor * expected`` lands on
    a half. That drift is part of the rating history and is kept as is.

    Args:
        winner_rating: Current rating of the declared winner
        loser_rating: Current rating of the declared loser
        k_factor: Sensitivity constant (default 32)

    Returns:
        RatingUpdate with new ratings and signed deltas
    """
    expected_winner = expected_score(winner_rating, loser_rating)
    expected_loser = expected_score(loser_rating, winner_rating)

    # R' = R + round(K * (S - E)); only the change goes through float
    new_winner_rating = winner_rating + round_rating(k_factor * (1.0 - expected_winner))
    new_loser_rating = loser_rating + round_rating(k_factor * (0.0 - expected_loser))

    return RatingUpdate(
        new_winner_rating=new_winner_rating,
        new_loser_rating=new_loser_rating,
        winner_delta=new_winner_rating - winner_rating,
        loser_delta=new_loser_rating - loser_rating,
    )
