"""Exceptions raised by the ranking core."""


class RankerError(Exception):
    """Base class for ranking core errors."""


class InsufficientRosterError(RankerError, ValueError):
    """Matchmaking was requested from a roster with fewer than two members."""

    def __init__(self, roster_size: int):
        super().__init__(f"Need at least 2 competitors to draw a match, roster has {roster_size}")
        self.roster_size = roster_size


class InvalidVoteError(RankerError, ValueError):
    """A vote named a competitor that is not part of the current match."""

    def __init__(self, winner_id: str, participant_ids: tuple[str, str]):
        super().__init__(
            f"Competitor {winner_id!r} is not a participant of the match "
            f"{participant_ids[0]!r} vs {participant_ids[1]!r}"
        )
        self.winner_id = winner_id
        self.participant_ids = participant_ids
