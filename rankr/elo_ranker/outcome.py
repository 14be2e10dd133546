"""Turning a vote into an Outcome and a durable store mutation."""

import time
from collections.abc import Callable

from rankr.async_utils import SupervisedTasks
from rankr.elo_ranker.elo import compute_update
from rankr.elo_ranker.errors import InvalidVoteError
from rankr.elo_ranker.models import Match, Outcome, RankerConfig
from rankr.logging import get_logger
from rankr.models import FIELD_LOSSES, FIELD_MATCHES, FIELD_RATING, FIELD_WINS, DocumentMutation
from rankr.store import DocumentStore

log = get_logger(__name__)

FailureCallback = Callable[[Outcome, BaseException], None]


def build_mutations(outcome: Outcome) -> list[DocumentMutation]:
    """Build the two-document atomic update recording ``outcome``."""
    return [
        DocumentMutation(
            doc_id=outcome.winner_id,
            field_sets={FIELD_RATING: outcome.projected_winner_rating},
            field_increments={FIELD_WINS: 1, FIELD_MATCHES: 1},
        ),
        DocumentMutation(
            doc_id=outcome.loser_id,
            field_sets={FIELD_RATING: outcome.projected_loser_rating},
            field_increments={FIELD_LOSSES: 1, FIELD_MATCHES: 1},
        ),
    ]


class MutationDispatcher:
    """Submits outcome mutations to the store in the background.

    Submission never blocks the caller. Failed writes are not retried and
    not rolled back; they are logged and reported through ``on_failure``.
    The next snapshot from the store corrects any divergence.
    """

    def __init__(
        self,
        store: DocumentStore,
        collection_key: str,
        on_failure: FailureCallback | None = None,
    ):
        self.store = store
        self.collection_key = collection_key
        self.on_failure = on_failure
        self._tasks = SupervisedTasks("outcome_mutations", on_error=self._report_failure)

    @property
    def pending(self) -> int:
        """Number of submitted mutations not yet acknowledged."""
        return self._tasks.pending

    def submit(self, outcome: Outcome) -> None:
        self._tasks.spawn(self._commit(outcome), context=outcome)

    async def drain(self) -> None:
        await self._tasks.drain()

    async def _commit(self, outcome: Outcome) -> None:
        start_time = time.monotonic()
        log.info(
            "mutation_submit",
            collection=self.collection_key,
            winner=outcome.winner_id,
            loser=outcome.loser_id,
        )
        await self.store.atomic_update(self.collection_key, build_mutations(outcome))
        log.info(
            "mutation_committed",
            winner=outcome.winner_id,
            loser=outcome.loser_id,
            duration_sec=round(time.monotonic() - start_time, 3),
        )

    def _report_failure(self, exc: BaseException, outcome: Outcome) -> None:
        log.warning(
            "mutation_failed",
            winner=outcome.winner_id,
            loser=outcome.loser_id,
            error=repr(exc),
        )
        if self.on_failure is not None:
            self.on_failure(outcome, exc)


class OutcomeApplier:
    """Computes vote outcomes and hands their mutations to the dispatcher."""

    def __init__(self, config: RankerConfig, dispatcher: MutationDispatcher | None = None):
        self.config = config
        self.dispatcher = dispatcher

    def compute_outcome(self, match: Match, winner_id: str) -> Outcome:
        """Compute the Outcome of ``match`` won by ``winner_id`` without side effects.

        Raises:
            InvalidVoteError: if ``winner_id`` is not one of the participants
        """
        if not match.includes(winner_id):
            raise InvalidVoteError(winner_id, match.ids)

        winner = match.get(winner_id)
        loser = match.opponent_of(winner_id)
        update = compute_update(winner.rating, loser.rating, self.config.k_factor)

        return Outcome(
            winner_id=winner.id,
            loser_id=loser.id,
            winner_delta=update.winner_delta,
            loser_delta=update.loser_delta,
            projected_winner_rating=update.new_winner_rating,
            projected_loser_rating=update.new_loser_rating,
            projected_winner_wins=winner.wins + 1,
            projected_loser_losses=loser.losses + 1,
        )

    def apply_vote(self, match: Match, winner_id: str) -> Outcome:
        """Compute the Outcome and enqueue its durable mutation.

        Args:
            match: The match as currently held in the roster
            winner_id: Id of the declared winner

        Returns:
            The Outcome with deltas and projected next state

        Raises:
            InvalidVoteError: if ``winner_id`` is not one of the participants
        """
        outcome = self.compute_outcome(match, winner_id)
        log.info(
            "vote_recorded",
            winner=outcome.winner_id,
            loser=outcome.loser_id,
            winner_delta=outcome.winner_delta,
            loser_delta=outcome.loser_delta,
        )
        if self.dispatcher is not None:
            self.dispatcher.submit(outcome)
        return outcome
