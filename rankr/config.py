"""Startup configuration resolved from the environment.

The ranking core never reads the environment itself; ``load_settings`` is
called once by the entry point and the resulting ``RankerConfig`` is passed
down explicitly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

from rankr.elo_ranker.models import RankerConfig

PREVIEW_COLLECTION_TEMPLATE = "artifacts/{app_id}/public/data/{collection}"


class Settings(BaseModel):
    """Everything the entry point needs to start a session."""
    ranker: RankerConfig = Field(default_factory=RankerConfig)
    app_id: str | None = None
    auth_token: str | None = None
    log_level: str = "INFO"


def resolve_collection_path(collection: str, app_id: str | None) -> str:
    """Return the storage path for ``collection``.

    Preview deployments are namespaced under their app id; production uses
    the bare collection key.
    """
    if app_id:
        return PREVIEW_COLLECTION_TEMPLATE.format(app_id=app_id, collection=collection)
    return collection


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from environment variables.

    Recognised variables: RANKR_K_FACTOR, RANKR_STARTING_RATING,
    RANKR_COLLECTION, RANKR_REVEAL_DELAY, RANKR_RESUBSCRIBE_DELAY,
    RANKR_APP_ID, RANKR_AUTH_TOKEN, LOG_LEVEL.

    Raises:
        pydantic.ValidationError: if a variable holds an invalid value
    """
    env = os.environ if environ is None else environ

    ranker_fields: dict[str, str] = {}
    for env_name, field in (
        ("RANKR_K_FACTOR", "k_factor"),
        ("RANKR_STARTING_RATING", "starting_rating"),
        ("RANKR_REVEAL_DELAY", "reveal_delay"),
        ("RANKR_RESUBSCRIBE_DELAY", "resubscribe_delay"),
    ):
        value = env.get(env_name, "").strip()
        if value:
            ranker_fields[field] = value

    app_id = env.get("RANKR_APP_ID", "").strip() or None
    collection = env.get("RANKR_COLLECTION", "").strip() or RankerConfig().collection_key
    ranker_fields["collection_key"] = resolve_collection_path(collection, app_id)

    return Settings(
        ranker=RankerConfig.model_validate(ranker_fields),
        app_id=app_id,
        auth_token=env.get("RANKR_AUTH_TOKEN", "").strip() or None,
        log_level=env.get("LOG_LEVEL", "INFO"),
    )
