"""Unit tests for the reconciliation loop state machine."""

import asyncio

import pytest
from conftest import make_document, make_snapshot, wait_until

from rankr.elo_ranker.errors import InvalidVoteError
from rankr.elo_ranker.models import Phase
from rankr.elo_ranker.reconcile import ReconciliationLoop
from rankr.models import DocumentMutation, seed_fields
from rankr.session import RosterSeeder
from rankr.store import InMemoryStore, StoreError

pytestmark = pytest.mark.unit


async def seeded_store(*names: str, collection: str = "players") -> tuple[InMemoryStore, list[str]]:
    store = InMemoryStore()
    ids = await store.atomic_insert_many(collection, [seed_fields(n, 1200) for n in names])
    return store, ids


@pytest.fixture
async def start_loop(fast_config, events):
    """Factory starting loops that are closed again after the test."""
    loops = []

    async def factory(store, config=None, **kwargs):
        loop = ReconciliationLoop(store, config or fast_config, event_handler=events, **kwargs)
        await loop.start()
        loops.append(loop)
        return loop

    yield factory

    for loop in loops:
        await loop.close()
        await loop.dispatcher.drain()


class TestRosterLoading:
    """Tests for snapshot delivery before the first match."""

    async def test_first_snapshot_opens_voting(self, start_loop):
        store, ids = await seeded_store("Ada", "Bo", "Cy")
        loop = await start_loop(store)

        match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)

        assert loop.phase is Phase.VOTING
        assert set(loop.roster) == set(ids)
        assert match.first.id != match.second.id
        assert set(match.ids) <= set(ids)
        assert loop.outcome is None

    async def test_empty_collection_is_seeded_once(self, start_loop, fast_config, events):
        store = InMemoryStore()
        seeder = RosterSeeder(store, fast_config, names=["Ada", "Bo", "Cy"])
        loop = await start_loop(store, seeder=seeder)

        await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)

        assert len(loop.roster) == 3
        assert {c.display_name for c in loop.roster.values()} == {"Ada", "Bo", "Cy"}
        assert all(c.rating == 1200 for c in loop.roster.values())
        assert [e["count"] for e in events.of("on_roster_seeded")] == [3]

    async def test_empty_collection_without_seeder_keeps_waiting(self, start_loop):
        loop = await start_loop(InMemoryStore())
        await asyncio.sleep(0.02)

        assert loop.phase is Phase.AWAITING_ROSTER
        assert loop.match is None

    async def test_single_competitor_keeps_waiting(self, start_loop):
        store, _ = await seeded_store("Ada")
        loop = await start_loop(store)

        await wait_until(lambda: len(loop.roster) == 1)

        assert loop.phase is Phase.AWAITING_ROSTER
        assert loop.match is None
        assert loop.cast_vote("anyone") is None

    async def test_start_twice_raises(self, start_loop):
        loop = await start_loop(InMemoryStore())

        with pytest.raises(RuntimeError):
            await loop.start()


class TestSnapshotMerge:
    """Tests for apply_snapshot."""

    def test_same_snapshot_twice_is_idempotent(self, fast_config):
        loop = ReconciliationLoop(InMemoryStore(), fast_config)
        snapshot = make_snapshot(make_document("A", 1216, wins=1), make_document("B", 1184, losses=1))

        assert loop.apply_snapshot(snapshot) == 2
        before = dict(loop.authoritative_roster)

        assert loop.apply_snapshot(snapshot) == 0
        assert dict(loop.authoritative_roster) == before

    def test_changed_competitors_are_replaced(self, fast_config):
        loop = ReconciliationLoop(InMemoryStore(), fast_config)
        loop.apply_snapshot(make_snapshot(make_document("A"), make_document("B")))

        changed = loop.apply_snapshot(make_snapshot(make_document("A", 1230, wins=1), make_document("B")))

        assert changed == 1
        assert loop.authoritative_roster["A"].rating == 1230
        assert loop.authoritative_roster["A"].wins == 1
        assert loop.authoritative_roster["B"].rating == 1200

    def test_missing_competitors_are_kept(self, fast_config):
        loop = ReconciliationLoop(InMemoryStore(), fast_config)
        loop.apply_snapshot(make_snapshot(make_document("A"), make_document("B")))

        loop.apply_snapshot(make_snapshot(make_document("A", 1300)))

        assert set(loop.authoritative_roster) == {"A", "B"}

    def test_malformed_documents_are_skipped(self, fast_config):
        loop = ReconciliationLoop(InMemoryStore(), fast_config)
        snapshot = make_snapshot(
            make_document("A"),
            make_document("B", rating="not a number"),
            make_document("C", wins=None, losses=None),
        )

        loop.apply_snapshot(snapshot)

        assert set(loop.authoritative_roster) == {"A", "C"}
        assert loop.authoritative_roster["C"].match_count == 0

    def test_roster_view_is_read_only(self, fast_config):
        loop = ReconciliationLoop(InMemoryStore(), fast_config)
        loop.apply_snapshot(make_snapshot(make_document("A"), make_document("B")))

        with pytest.raises(TypeError):
            loop.roster["A"] = None


class TestVoting:
    """Tests for the VOTING -> REVEALED -> VOTING cycle."""

    async def test_vote_reveals_then_advances(self, start_loop, events):
        store, _ = await seeded_store("Ada", "Bo")
        loop = await start_loop(store)
        match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)
        winner, loser = match.first.id, match.second.id

        outcome = loop.cast_vote(winner)

        assert outcome.winner_delta == 16
        assert outcome.loser_delta == -16
        assert loop.phase is Phase.REVEALED
        assert loop.outcome == outcome
        assert not loop.accepting_votes
        assert loop.match.get(winner).rating == 1216
        assert loop.match.get(loser).rating == 1184

        await wait_until(lambda: loop.phase is Phase.VOTING)

        assert loop.outcome is None
        assert loop.match is not None
        await wait_until(lambda: loop.authoritative_roster[winner].rating == 1216)
        assert loop.authoritative_roster[winner].wins == 1
        assert loop.authoritative_roster[loser].losses == 1
        assert loop.authoritative_roster[loser].match_count == 1

        phases = [e["current"] for e in events.of("on_phase_change")]
        assert phases == [Phase.AWAITING_ROSTER, Phase.VOTING, Phase.REVEALED, Phase.VOTING]
        assert [e["outcome"] for e in events.of("on_outcome")] == [outcome]
        assert len(events.of("on_match_start")) == 2

    async def test_second_vote_during_reveal_is_ignored(self, start_loop):
        store, _ = await seeded_store("Ada", "Bo")
        loop = await start_loop(store)
        match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)

        first = loop.cast_vote(match.first.id)
        second = loop.cast_vote(match.second.id)

        assert first is not None
        assert second is None
        assert loop.outcome == first
        await loop.dispatcher.drain()
        assert store.update_calls == 1

    async def test_vote_for_non_participant_raises(self, start_loop):
        store, _ = await seeded_store("Ada", "Bo", "Cy")
        loop = await start_loop(store)
        match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)
        bystander = next(cid for cid in loop.roster if not match.includes(cid))

        with pytest.raises(InvalidVoteError):
            loop.cast_vote(bystander)

        assert loop.phase is Phase.VOTING

    async def test_vote_for_non_participant_during_reveal_raises(self, start_loop):
        store, _ = await seeded_store("Ada", "Bo", "Cy")
        loop = await start_loop(store)
        match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)
        bystander = next(cid for cid in loop.roster if not match.includes(cid))
        outcome = loop.cast_vote(match.first.id)

        with pytest.raises(InvalidVoteError):
            loop.cast_vote(bystander)

        assert loop.phase is Phase.REVEALED
        assert loop.outcome == outcome

    async def test_vote_before_roster_is_ignored(self, start_loop):
        loop = await start_loop(InMemoryStore())

        assert loop.cast_vote("A") is None


class TestOptimisticProjection:
    """Tests for keeping projected values visible during the reveal."""

    async def test_stale_snapshot_does_not_regress_display(self, start_loop):
        store, (a, b) = await seeded_store("Ada", "Bo")
        loop = await start_loop(store)
        match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)
        store.write_latency = 0.3
        stale = store.snapshot("players")

        loop.cast_vote(match.first.id)
        winner, loser = match.first.id, match.second.id
        # Snapshot from before the write lands
        loop.apply_snapshot(stale)

        assert loop.authoritative_roster[winner].rating == 1200
        assert loop.displayed(winner).rating == 1216
        assert loop.displayed(loser).rating == 1184
        assert loop.match.get(loser).losses == 1
        assert loop.roster[winner].wins == 1

    async def test_overrides_cleared_when_reveal_elapses(self, start_loop):
        store, _ = await seeded_store("Ada", "Bo")
        loop = await start_loop(store)
        match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)
        store.write_latency = 0.3

        loop.cast_vote(match.first.id)
        await wait_until(lambda: loop.phase is Phase.VOTING)

        assert dict(loop.roster) == dict(loop.authoritative_roster)

    async def test_votes_blocked_until_write_acknowledged(self, start_loop):
        store, _ = await seeded_store("Ada", "Bo")
        loop = await start_loop(store)
        match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)
        store.write_latency = 0.3

        loop.cast_vote(match.first.id)
        next_match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)

        assert loop.dispatcher.pending == 1
        assert not loop.accepting_votes
        assert loop.cast_vote(next_match.first.id) is None

        await loop.dispatcher.drain()

        assert loop.accepting_votes
        assert loop.cast_vote(loop.match.first.id) is not None

    async def test_failed_write_keeps_projection_and_reports(self, start_loop, fast_config, events):
        store, _ = await seeded_store("Ada", "Bo")
        config = fast_config.model_copy(update={"reveal_delay": 0.2})
        loop = await start_loop(store, config)
        match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)
        store.fail_next_write(StoreError("permission denied"))

        outcome = loop.cast_vote(match.first.id)
        await wait_until(lambda: events.of("on_mutation_failed"))

        failure = events.of("on_mutation_failed")[0]
        assert failure["outcome"] == outcome
        assert isinstance(failure["error"], StoreError)
        assert loop.phase is Phase.REVEALED
        assert loop.displayed(match.first.id).rating == 1216

        await wait_until(lambda: loop.phase is Phase.VOTING)

        # The store never changed, so the authoritative value wins again
        assert loop.displayed(match.first.id).rating == 1200
        assert store.update_calls == 1


class TestSubscriptionLifecycle:
    """Tests for stream restarts and teardown."""

    async def test_dropped_subscription_is_restarted(self, start_loop, events):
        store, (a, _) = await seeded_store("Ada", "Bo")
        loop = await start_loop(store)
        await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)

        store.drop_subscriptions(StoreError("connection reset"))
        await wait_until(lambda: events.of("on_subscription_error") and store.subscriber_count == 1)

        await store.atomic_update("players", [DocumentMutation(doc_id=a, field_sets={"elo": 1500})])
        await wait_until(lambda: loop.authoritative_roster[a].rating == 1500)

        assert loop.phase is Phase.VOTING

    async def test_seed_store_error_is_retried_after_resubscribe(self, start_loop, fast_config, events):
        store = InMemoryStore()
        seeder = RosterSeeder(store, fast_config, names=["Ada", "Bo"])
        store.fail_next_write(StoreError("quota exceeded"))
        loop = await start_loop(store, seeder=seeder)

        await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)

        assert len(events.of("on_subscription_error")) == 1
        assert [e["count"] for e in events.of("on_roster_seeded")] == [2]
        assert len(store.documents("players")) == 2

    async def test_failing_seeder_is_reported_and_close_resets(self, start_loop, events):
        class BrokenSeeder:
            async def seed(self):
                raise RuntimeError("seed backend misconfigured")

        store = InMemoryStore()
        loop = await start_loop(store, seeder=BrokenSeeder())

        await wait_until(lambda: events.of("on_subscription_error"))

        error = events.of("on_subscription_error")[0]["error"]
        assert isinstance(error, RuntimeError)
        assert loop.phase is Phase.AWAITING_ROSTER
        assert store.subscriber_count == 0

        await loop.close()

        assert loop.phase is Phase.IDLE
        assert loop.match is None

    async def test_close_cancels_reveal_timer_but_not_write(self, start_loop):
        store, _ = await seeded_store("Ada", "Bo")
        loop = await start_loop(store)
        match = await asyncio.wait_for(loop.wait_for_match(), timeout=1.0)
        store.write_latency = 0.05

        loop.cast_vote(match.first.id)
        await loop.close()
        await asyncio.sleep(0.1)

        assert loop.phase is Phase.IDLE
        assert loop.match is None
        assert loop.outcome is None
        assert store.subscriber_count == 0

        await loop.dispatcher.drain()
        assert store.documents("players")[match.first.id]["elo"] == 1216

    async def test_close_is_idempotent(self, start_loop):
        store, _ = await seeded_store("Ada", "Bo")
        loop = await start_loop(store)

        await loop.close()
        await loop.close()

        assert loop.phase is Phase.IDLE
