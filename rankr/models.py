"""Document-store wire models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Field names used in stored competitor documents
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_RATING = "elo"
FIELD_WINS = "wins"
FIELD_LOSSES = "losses"
FIELD_MATCHES = "matches"


class StoreDocument(BaseModel):
    """A single document as delivered by the store."""
    model_config = ConfigDict(frozen=True)

    id: str
    fields: dict[str, Any] = Field(default_factory=dict)


class Snapshot(BaseModel):
    """Full view of a collection at one point in time."""
    model_config = ConfigDict(frozen=True)

    documents: list[StoreDocument] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.documents


class DocumentMutation(BaseModel):
    """Field sets and increments for one document within an atomic update."""
    model_config = ConfigDict(frozen=True)

    doc_id: str
    field_sets: dict[str, Any] = Field(default_factory=dict)
    field_increments: dict[str, int] = Field(default_factory=dict)


def seed_fields(display_name: str, starting_rating: int) -> dict[str, Any]:
    """Fields for a freshly seeded competitor document."""
    return {
        FIELD_NAME: display_name,
        FIELD_RATING: starting_rating,
        FIELD_WINS: 0,
        FIELD_LOSSES: 0,
        FIELD_MATCHES: 0,
    }
