"""Data models for the rating core."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Tier(BaseModel):
    """One row of the tier table.

    ``min_rating`` of None marks the open-ended bottom tier.
    """
    model_config = ConfigDict(frozen=True)

    label: str
    min_rating: int | None = None
    style: str = "white"  # Rich style used by the console display


DEFAULT_TIERS: tuple[Tier, ...] = (
    Tier(label="S", min_rating=1600, style="bold gold1"),
    Tier(label="A", min_rating=1400, style="bold red"),
    Tier(label="B", min_rating=1200, style="bold magenta"),
    Tier(label="C", min_rating=1000, style="bold blue"),
    Tier(label="D", min_rating=900, style="bold green"),
    Tier(label="F", min_rating=None, style="grey50"),
)


class RankerConfig(BaseModel):
    """Configuration for the rating core."""
    starting_rating: int = 1200
    k_factor: float = Field(default=32.0, gt=0)

    # Tier table, highest threshold first
    tiers: tuple[Tier, ...] = DEFAULT_TIERS

    # Storage
    collection_key: str = "rankr_players_v3"

    # Timing (seconds)
    reveal_delay: float = Field(default=1.5, ge=0)
    resubscribe_delay: float = Field(default=1.0, ge=0)

    @field_validator("tiers")
    @classmethod
    def _check_tiers(cls, tiers: tuple[Tier, ...]) -> tuple[Tier, ...]:
        if not tiers:
            raise ValueError("tier table must not be empty")
        if tiers[-1].min_rating is not None:
            raise ValueError("last tier must be open-ended (min_rating=None)")

        bounded = [t.min_rating for t in tiers[:-1]]
        if any(threshold is None for threshold in bounded):
            raise ValueError("only the last tier may be open-ended")
        if any(a <= b for a, b in zip(bounded, bounded[1:])):
            raise ValueError("tier thresholds must be strictly descending")

        labels = [t.label for t in tiers]
        if len(set(labels)) != len(labels):
            raise ValueError("tier labels must be unique")
        return tiers


class Competitor(BaseModel):
    """A competitor as held in the roster.

    Instances are immutable; roster updates replace them wholesale.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    rating: int
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)

    @property
    def match_count(self) -> int:
        return self.wins + self.losses


class Match(BaseModel):
    """A transient pairing of two distinct competitors."""
    model_config = ConfigDict(frozen=True)

    first: Competitor
    second: Competitor

    @model_validator(mode="after")
    def _check_distinct(self) -> "Match":
        if self.first.id == self.second.id:
            raise ValueError(f"a match needs two distinct competitors, got {self.first.id!r} twice")
        return self

    @property
    def ids(self) -> tuple[str, str]:
        return self.first.id, self.second.id

    def includes(self, competitor_id: str) -> bool:
        return competitor_id in self.ids

    def get(self, competitor_id: str) -> Competitor:
        """Return the participant with ``competitor_id``."""
        if competitor_id == self.first.id:
            return self.first
        if competitor_id == self.second.id:
            return self.second
        raise KeyError(competitor_id)

    def opponent_of(self, competitor_id: str) -> Competitor:
        """Return the participant facing ``competitor_id``."""
        if competitor_id == self.first.id:
            return self.second
        if competitor_id == self.second.id:
            return self.first
        raise KeyError(competitor_id)


class RatingUpdate(BaseModel):
    """New ratings for both sides of a decided match."""
    model_config = ConfigDict(frozen=True)

    new_winner_rating: int
    new_loser_rating: int
    winner_delta: int
    loser_delta: int


class Outcome(BaseModel):
    """Result of a decided match: deltas plus the projected next state."""
    model_config = ConfigDict(frozen=True)

    winner_id: str
    loser_id: str
    winner_delta: int
    loser_delta: int
    projected_winner_rating: int
    projected_loser_rating: int
    projected_winner_wins: int
    projected_loser_losses: int

    def delta_for(self, competitor_id: str) -> int:
        if competitor_id == self.winner_id:
            return self.winner_delta
        if competitor_id == self.loser_id:
            return self.loser_delta
        raise KeyError(competitor_id)

    def project(self, competitor: Competitor) -> Competitor:
        """Return ``competitor`` with this outcome's projected fields applied."""
        if competitor.id == self.winner_id:
            return competitor.model_copy(
                update={"rating": self.projected_winner_rating, "wins": self.projected_winner_wins}
            )
        if competitor.id == self.loser_id:
            return competitor.model_copy(
                update={"rating": self.projected_loser_rating, "losses": self.projected_loser_losses}
            )
        return competitor


class Phase(str, Enum):
    """Phases of the voting flow."""
    IDLE = "idle"
    AWAITING_ROSTER = "awaiting_roster"
    VOTING = "voting"
    REVEALED = "revealed"

    def __str__(self) -> str:
        return self.value
