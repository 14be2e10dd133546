"""Conversion between stored documents and roster competitors."""

from pydantic import ValidationError

from rankr.elo_ranker.models import Competitor
from rankr.models import FIELD_LOSSES, FIELD_NAME, FIELD_RATING, FIELD_WINS, StoreDocument


def competitor_from_document(document: StoreDocument) -> Competitor:
    """Build a Competitor from a stored document.

    Missing win/loss counters default to 0. A missing name or rating is a
    data error.

    Raises:
        ValueError: if required fields are missing or malformed
    """
    fields = document.fields
    if FIELD_NAME not in fields:
        raise ValueError(f"document {document.id!r} has no {FIELD_NAME!r} field")
    if FIELD_RATING not in fields:
        raise ValueError(f"document {document.id!r} has no {FIELD_RATING!r} field")

    rating = fields[FIELD_RATING]
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        raise ValueError(f"document {document.id!r} has a non-numeric rating: {rating!r}")
    if isinstance(rating, float) and not rating.is_integer():
        raise ValueError(f"document {document.id!r} has a fractional rating: {rating!r}")

    try:
        return Competitor(
            id=document.id,
            display_name=str(fields[FIELD_NAME]),
            rating=int(rating),
            wins=fields.get(FIELD_WINS) or 0,
            losses=fields.get(FIELD_LOSSES) or 0,
        )
    except ValidationError as exc:
        raise ValueError(f"document {document.id!r} is malformed: {exc}") from exc
