"""Session wiring shared by every entry point."""

from dataclasses import dataclass

from rankr.config import Settings
from rankr.elo_ranker.pairing import PairingStrategy
from rankr.elo_ranker.reconcile import ReconciliationLoop
from rankr.events import EventHandler
from rankr.logging import bind_session_context, get_logger
from rankr.session import Identity, IdentityProvider, RosterSeeder, establish_identity
from rankr.store import DocumentStore

log = get_logger(__name__)


@dataclass
class Session:
    """A started voting session."""
    identity: Identity
    loop: ReconciliationLoop

    async def close(self) -> None:
        await self.loop.close()


async def start_session(
    settings: Settings,
    store: DocumentStore,
    identity_provider: IdentityProvider,
    event_handler: EventHandler | None = None,
    pairing: PairingStrategy | None = None,
    seed_names: list[str] | None = None,
) -> Session:
    """Sign in, then subscribe to the roster collection.

    The store subscription is only opened once an identity is present.

    Args:
        settings: Resolved startup settings
        store: Document store holding the roster collection
        identity_provider: Backend used to sign the voter in
        event_handler: Optional event handler (uses NullEventHandler if None)
        pairing: Optional matchmaking strategy
        seed_names: Names used if the collection is empty (default roster if None)

    Returns:
        The started Session; the roster arrives asynchronously
    """
    identity = await establish_identity(identity_provider, settings.auth_token)
    bind_session_context(uid=identity.uid, collection=settings.ranker.collection_key)

    if seed_names is None:
        seeder = RosterSeeder(store, settings.ranker)
    else:
        seeder = RosterSeeder(store, settings.ranker, seed_names)

    loop = ReconciliationLoop(
        store,
        settings.ranker,
        pairing=pairing,
        seeder=seeder,
        event_handler=event_handler,
    )
    await loop.start()
    log.info("session_started", anonymous=identity.anonymous)
    return Session(identity=identity, loop=loop)
