"""Reconciliation of optimistic vote outcomes with the store's snapshot stream."""

import asyncio
import contextlib
from collections.abc import Mapping
from types import MappingProxyType
from typing import Protocol

from rankr.elo_ranker.documents import competitor_from_document
from rankr.elo_ranker.errors import InvalidVoteError
from rankr.elo_ranker.models import Competitor, Match, Outcome, Phase, RankerConfig
from rankr.elo_ranker.outcome import MutationDispatcher, OutcomeApplier
from rankr.elo_ranker.pairing import PairingStrategy, RandomPairing
from rankr.events import EventHandler, NullEventHandler
from rankr.logging import get_logger
from rankr.models import Snapshot
from rankr.store import DocumentStore, StoreError, Subscription

log = get_logger(__name__)


class Seeder(Protocol):
    """Populates an empty collection."""

    async def seed(self) -> int:
        """Seed the collection and return the number of competitors written."""
        ...


class ReconciliationLoop:
    """Owns the roster and the voting flow for one session.

    State is kept in two layers: the authoritative roster, replaced or merged
    from store snapshots, and a short-lived override map holding the
    optimistic projection of the last Outcome. Overrides take precedence for
    everything the voter sees and are cleared exactly when the reveal timer
    elapses. Matches are always drawn from the authoritative layer.

    Phases:
        IDLE -> AWAITING_ROSTER on ``start``
        AWAITING_ROSTER -> VOTING once a snapshot yields two or more competitors
        VOTING -> REVEALED on ``cast_vote``
        REVEALED -> VOTING when the reveal timer elapses
        any -> IDLE on ``close``

    Everything runs on the event loop thread, which serializes roster reads
    and writes.
    """

    def __init__(
        self,
        store: DocumentStore,
        config: RankerConfig | None = None,
        pairing: PairingStrategy | None = None,
        seeder: Seeder | None = None,
        event_handler: EventHandler | None = None
    ):
        """Initialize the loop.

        Args:
            store: Document store holding the roster collection
            config: Rating and timing configuration (uses defaults if None)
            pairing: Matchmaking strategy (uniform random if None)
            seeder: Called when the collection turns out to be empty
            event_handler: Receives presentation and observability events
        """
        self.store = store
        self.config = config or RankerConfig()
        self.pairing = pairing or RandomPairing()
        self.seeder = seeder
        self.event_handler = event_handler or NullEventHandler()

        self.dispatcher = MutationDispatcher(
            store,
            self.config.collection_key,
            on_failure=self._on_mutation_failed,
        )
        self.applier = OutcomeApplier(self.config, self.dispatcher)

        self._roster: dict[str, Competitor] = {}
        self._overrides: dict[str, Competitor] = {}
        self._phase = Phase.IDLE
        self._match_ids: tuple[str, str] | None = None
        self._outcome: Outcome | None = None

        self._reveal_timer: asyncio.TimerHandle | None = None
        self._subscription: Subscription | None = None
        self._consumer: asyncio.Task | None = None
        self._seeded = False
        self._closed = False
        self._voting = asyncio.Event()

    # Observer-facing state

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def roster(self) -> Mapping[str, Competitor]:
        """Read-only roster as the voter sees it (overrides applied)."""
        return MappingProxyType(
            {cid: self._overrides.get(cid, competitor) for cid, competitor in self._roster.items()}
        )

    @property
    def authoritative_roster(self) -> Mapping[str, Competitor]:
        """Read-only roster exactly as last received from the store."""
        return MappingProxyType(self._roster)

    @property
    def match(self) -> Match | None:
        """The current match, with participants resolved through the overrides."""
        if self._match_ids is None:
            return None
        first_id, second_id = self._match_ids
        return Match(first=self.displayed(first_id), second=self.displayed(second_id))

    @property
    def outcome(self) -> Outcome | None:
        return self._outcome

    @property
    def accepting_votes(self) -> bool:
        return self._phase is Phase.VOTING and self.dispatcher.pending == 0

    async def wait_for_match(self) -> Match:
        """Wait until a match is open for voting and return it."""
        while True:
            await self._voting.wait()
            match = self.match
            if match is not None:
                return match

    def displayed(self, competitor_id: str) -> Competitor:
        """Return the value shown for ``competitor_id``.

        Raises:
            KeyError: if the competitor is not in the roster
        """
        if competitor_id in self._overrides:
            return self._overrides[competitor_id]
        return self._roster[competitor_id]

    # Lifecycle

    async def start(self) -> None:
        """Subscribe to the roster collection and wait for the first snapshot."""
        if self._phase is not Phase.IDLE:
            raise RuntimeError(f"loop already started (phase={self._phase})")

        self._closed = False
        self._set_phase(Phase.AWAITING_ROSTER)
        self._consumer = asyncio.get_running_loop().create_task(self._consume())
        log.info("reconciliation_started", collection=self.config.collection_key)

    async def close(self) -> None:
        """Tear down the subscription and cancel the reveal timer.

        Mutations already submitted keep running in the background.
        """
        self._closed = True
        self._cancel_reveal_timer()

        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

        consumer, self._consumer = self._consumer, None
        try:
            if consumer is not None:
                consumer.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await consumer
        finally:
            self._overrides = {}
            self._outcome = None
            self._match_ids = None
            self._set_phase(Phase.IDLE)
            log.info("reconciliation_closed", pending_mutations=self.dispatcher.pending)

    # Snapshot handling

    def apply_snapshot(self, snapshot: Snapshot) -> int:
        """Merge an authoritative snapshot into the roster.

        The first non-empty snapshot replaces the roster wholesale; later ones
        replace only competitors whose values changed, so applying the same
        snapshot twice is a no-op. Malformed documents are skipped.

        Returns:
            Number of competitors added or changed
        """
        incoming: dict[str, Competitor] = {}
        for document in snapshot.documents:
            try:
                competitor = competitor_from_document(document)
            except ValueError as exc:
                log.warning("snapshot_document_skipped", doc_id=document.id, reason=str(exc))
                continue
            incoming[competitor.id] = competitor

        if not self._roster:
            self._roster = incoming
            changed = len(incoming)
        else:
            changed = 0
            for cid, competitor in incoming.items():
                if self._roster.get(cid) != competitor:
                    self._roster[cid] = competitor
                    changed += 1

        log.info(
            "snapshot_applied",
            documents=len(snapshot.documents),
            roster_size=len(self._roster),
            changed=changed,
            phase=str(self._phase),
        )
        self.event_handler.on_roster_updated(roster_size=len(self._roster), changed=changed)

        if self._phase is Phase.AWAITING_ROSTER and len(self._roster) >= 2:
            self._draw_next_match()

        return changed

    async def _consume(self) -> None:
        while not self._closed:
            subscription = self.store.subscribe(self.config.collection_key)
            self._subscription = subscription
            try:
                async for snapshot in subscription:
                    await self._handle_snapshot(snapshot)
            except StoreError as exc:
                subscription.unsubscribe()
                log.warning(
                    "subscription_dropped",
                    error=repr(exc),
                    retry_in_sec=self.config.resubscribe_delay,
                )
                self.event_handler.on_subscription_error(error=exc)
                await asyncio.sleep(self.config.resubscribe_delay)
                continue
            except Exception as exc:
                # Not transient: stop consuming but leave the loop closable
                subscription.unsubscribe()
                log.exception("consumer_failed", error=repr(exc), phase=str(self._phase))
                self.event_handler.on_subscription_error(error=exc)
                return
            # Stream ended because it was unsubscribed
            break

    async def _handle_snapshot(self, snapshot: Snapshot) -> None:
        if snapshot.is_empty and not self._roster:
            await self._seed_if_needed()
            return
        self.apply_snapshot(snapshot)

    async def _seed_if_needed(self) -> None:
        if self._seeded or self.seeder is None:
            log.info("roster_empty", seeding=False)
            return

        count = await self.seeder.seed()
        self._seeded = True
        self.event_handler.on_roster_seeded(count=count)

    # Voting

    def cast_vote(self, winner_id: str) -> Outcome | None:
        """Declare ``winner_id`` the winner of the current match.

        Votes arriving while inputs are disabled (not VOTING, or the previous
        vote's write still unacknowledged) are ignored and return None.

        Raises:
            InvalidVoteError: if ``winner_id`` is not in the current match, in any phase
        """
        match = self.match
        if match is not None and not match.includes(winner_id):
            raise InvalidVoteError(winner_id, match.ids)
        if self._phase is not Phase.VOTING or match is None:
            log.debug("vote_ignored", reason="not_voting", phase=str(self._phase))
            return None
        if self.dispatcher.pending:
            log.info("vote_ignored", reason="mutation_pending", pending=self.dispatcher.pending)
            return None

        outcome = self.applier.apply_vote(match, winner_id)
        self._outcome = outcome
        self._overrides = {c.id: outcome.project(c) for c in (match.first, match.second)}
        self._set_phase(Phase.REVEALED)
        self._reveal_timer = asyncio.get_running_loop().call_later(
            self.config.reveal_delay, self._on_reveal_elapsed
        )
        self.event_handler.on_outcome(outcome=outcome)
        return outcome

    def _on_reveal_elapsed(self) -> None:
        self._reveal_timer = None
        self._outcome = None
        self._overrides = {}
        self._draw_next_match()

    def _draw_next_match(self) -> None:
        competitors = list(self._roster.values())
        if len(competitors) < 2:
            self._match_ids = None
            self._set_phase(Phase.AWAITING_ROSTER)
            return

        match = self.pairing.select_match(competitors)
        self._match_ids = match.ids
        self._set_phase(Phase.VOTING)
        log.debug("match_drawn", first=match.first.id, second=match.second.id)
        self.event_handler.on_match_start(match=match)

    def _cancel_reveal_timer(self) -> None:
        if self._reveal_timer is not None:
            self._reveal_timer.cancel()
            self._reveal_timer = None

    def _set_phase(self, phase: Phase) -> None:
        previous = self._phase
        if previous is phase:
            return
        self._phase = phase
        if phase is Phase.VOTING:
            self._voting.set()
        else:
            self._voting.clear()
        log.debug("phase_change", previous=str(previous), current=str(phase))
        self.event_handler.on_phase_change(previous=previous, current=phase)

    def _on_mutation_failed(self, outcome: Outcome, error: BaseException) -> None:
        self.event_handler.on_mutation_failed(outcome=outcome, error=error)
