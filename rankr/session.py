"""Session bootstrap: voter identity and first-run roster seeding."""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Protocol

from pydantic import BaseModel

from rankr.elo_ranker.models import RankerConfig
from rankr.logging import get_logger
from rankr.models import seed_fields
from rankr.seed_roster import DEFAULT_ROSTER
from rankr.store import DocumentStore

log = get_logger(__name__)


class IdentityError(Exception):
    """Sign-in was rejected by the identity provider."""


class Identity(BaseModel):
    """The signed-in voter."""
    uid: str
    anonymous: bool = True


class IdentityProvider(Protocol):
    """Protocol for identity backends."""

    async def sign_in_with_token(self, token: str) -> Identity:
        """Sign in with a pre-issued token.

        Raises:
            IdentityError: if the token is rejected
        """
        ...

    async def sign_in_anonymously(self) -> Identity:
        ...


class LocalIdentityProvider:
    """Identity provider that accepts a fixed set of tokens.

    Anonymous sign-in always succeeds with a fresh random uid.
    """

    def __init__(self, tokens: dict[str, str] | None = None):
        # token -> uid
        self.tokens = dict(tokens or {})

    async def sign_in_with_token(self, token: str) -> Identity:
        uid = self.tokens.get(token)
        if uid is None:
            raise IdentityError("unknown token")
        return Identity(uid=uid, anonymous=False)

    async def sign_in_anonymously(self) -> Identity:
        return Identity(uid=f"anon-{uuid.uuid4().hex[:12]}", anonymous=True)


async def establish_identity(provider: IdentityProvider, token: str | None = None) -> Identity:
    """Sign in with ``token`` if given, falling back to an anonymous identity."""
    if token:
        try:
            identity = await provider.sign_in_with_token(token)
            log.info("identity_established", uid=identity.uid, anonymous=False)
            return identity
        except IdentityError as exc:
            log.warning("identity_fallback_anonymous", reason=str(exc))

    identity = await provider.sign_in_anonymously()
    log.info("identity_established", uid=identity.uid, anonymous=True)
    return identity


class RosterSeeder:
    """Writes the initial roster into an empty collection, at most once."""

    def __init__(
        self,
        store: DocumentStore,
        config: RankerConfig,
        names: Sequence[str] = DEFAULT_ROSTER,
    ):
        self.store = store
        self.config = config
        self.names = list(names)
        self.seeded = False

    async def seed(self) -> int:
        """Insert one document per name.

        Returns:
            Number of documents written (0 if already seeded)

        Raises:
            StoreError: if the insert failed; a later call may retry
        """
        if self.seeded:
            return 0

        documents = [seed_fields(name, self.config.starting_rating) for name in self.names]
        ids = await self.store.atomic_insert_many(self.config.collection_key, documents)
        self.seeded = True
        log.info("roster_seeded", collection=self.config.collection_key, count=len(ids))
        return len(ids)
