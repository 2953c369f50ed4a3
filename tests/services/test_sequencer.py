# tests/services/test_sequencer.py
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from fairseed.core.errors import InvalidInputError, NoActiveSeedError, OutcomeNotRecordedError
from fairseed.core.fairness import generate_outcome
from fairseed.services import InMemoryNonceCounter, SeedRegistry, SessionSequencer


@pytest.fixture
def sequencer(registry: SeedRegistry) -> SessionSequencer:
    registry.commit_new_server_seed()
    return SessionSequencer(registry)


@pytest.fixture
def session_id(registry: SeedRegistry) -> str:
    session_id, _ = registry.open_session("player-xyz")
    return session_id


def test_nonces_start_at_zero_and_increase(sequencer: SessionSequencer, session_id: str):
    nonces = [sequencer.place("coinflip", session_id).nonce for _ in range(5)]
    assert nonces == [0, 1, 2, 3, 4]


def test_record_reproduces_from_revealed_seed(
    registry: SeedRegistry, sequencer: SessionSequencer, session_id: str
):
    record = sequencer.place("slots", session_id)
    plaintext = registry.disclose(record.epoch_index)

    outcome = generate_outcome("slots", plaintext, record.client_seed, record.nonce)
    assert record.interpreted_outcome == outcome.to_json()
    assert record.raw_output == list(outcome.raw_output)
    assert record.digest_hex == outcome.digest_hex
    assert record.server_seed_hash == registry.get_seed(0).hashed_value
    assert record.client_seed == "player-xyz"
    assert record.game_kind == "slots"


def test_record_never_contains_plaintext(
    registry: SeedRegistry, sequencer: SessionSequencer, session_id: str
):
    record = sequencer.place("diceroll", session_id)
    _, plaintext = registry.checkout_active()
    values = [str(getattr(record, column)) for column in record.__table__.columns.keys()]
    assert all(plaintext not in value for value in values)


def test_store_receives_record(sequencer: SessionSequencer, session_id: str):
    store = MagicMock()
    record = sequencer.place("roulette", session_id, store=store)
    store.save.assert_called_once_with(record)


def test_no_active_seed(registry: SeedRegistry, session_id: str):
    sequencer = SessionSequencer(registry)
    with pytest.raises(NoActiveSeedError):
        sequencer.place("coinflip", session_id)
    # Seeds are never committed inline.
    assert registry.history() == []


def test_no_active_seed_after_reveal(
    registry: SeedRegistry, sequencer: SessionSequencer, session_id: str
):
    registry.disclose(0)
    with pytest.raises(NoActiveSeedError):
        sequencer.place("coinflip", session_id)


def test_unknown_game_kind_does_not_consume_nonce(sequencer: SessionSequencer, session_id: str):
    with pytest.raises(InvalidInputError):
        sequencer.place("poker", session_id)
    assert sequencer.place("coinflip", session_id).nonce == 0


def test_nonce_resets_per_epoch(registry: SeedRegistry, sequencer: SessionSequencer, session_id: str):
    sequencer.place("coinflip", session_id)
    sequencer.place("coinflip", session_id)
    registry.rotate_server_seed()

    record = sequencer.place("coinflip", session_id)
    assert record.epoch_index == 1
    assert record.nonce == 0


def test_client_seed_change_applies_to_next_wager(
    registry: SeedRegistry, sequencer: SessionSequencer, session_id: str
):
    first = sequencer.place("diceroll", session_id)
    registry.set_client_seed(session_id, "new-seed")
    second = sequencer.place("diceroll", session_id)
    assert first.client_seed == "player-xyz"
    assert second.client_seed == "new-seed"
    assert second.nonce == 1


def test_client_seed_sent_with_wager_is_snapshotted(
    registry: SeedRegistry, sequencer: SessionSequencer, session_id: str
):
    record = sequencer.place("diceroll", session_id, client_seed="sent-with-bet")
    assert record.client_seed == "sent-with-bet"
    assert registry.client_seed(session_id).value == "sent-with-bet"


def test_other_sessions_seed_is_not_used(registry: SeedRegistry, sequencer: SessionSequencer):
    alice, _ = registry.open_session("alice-seed")
    bob, _ = registry.open_session("bob-seed")
    registry.set_client_seed(bob, "attacker-choice")

    record = sequencer.place("diceroll", alice)
    assert record.client_seed == "alice-seed"


def test_nonce_is_shared_across_sessions(
    registry: SeedRegistry, sequencer: SessionSequencer, session_id: str
):
    other, _ = registry.open_session("other-seed")
    assert sequencer.place("coinflip", session_id).nonce == 0
    assert sequencer.place("coinflip", other).nonce == 1


class TestFailedStore:
    def test_failed_save_raises_and_releases_the_nonce(
        self, sequencer: SessionSequencer, session_id: str, caplog
    ):
        store = MagicMock()
        store.save.side_effect = SQLAlchemyError("database is locked")

        with pytest.raises(OutcomeNotRecordedError) as exc_info:
            sequencer.place("diceroll", session_id, store=store)

        assert exc_info.value.nonce == 0
        assert isinstance(exc_info.value.__cause__, SQLAlchemyError)
        assert "Outcome store failed" in caplog.text

        lost = store.save.call_args.args[0]
        retry = sequencer.place("diceroll", session_id, store=MagicMock())
        assert retry.nonce == 0
        # Same nonce and client seed means no re-roll of the outcome.
        assert retry.digest_hex == lost.digest_hex
        assert retry.interpreted_outcome == lost.interpreted_outcome

    def test_later_wagers_continue_after_a_failure(
        self, sequencer: SessionSequencer, session_id: str
    ):
        sequencer.place("coinflip", session_id)
        failing = MagicMock()
        failing.save.side_effect = SQLAlchemyError("boom")
        with pytest.raises(OutcomeNotRecordedError):
            sequencer.place("coinflip", session_id, store=failing)

        nonces = [sequencer.place("coinflip", session_id).nonce for _ in range(2)]
        assert nonces == [1, 2]


def test_concurrent_wagers_get_distinct_gap_free_nonces(
    registry: SeedRegistry, sequencer: SessionSequencer, session_id: str
):
    wagers = 400
    with ThreadPoolExecutor(max_workers=16) as pool:
        records = list(pool.map(lambda _: sequencer.place("diceroll", session_id), range(wagers)))

    nonces = sorted(record.nonce for record in records)
    assert nonces == list(range(wagers))
    assert sequencer.counter.peek(registry.get_seed(0).hashed_value) == wagers


def test_concurrent_wagers_with_rotation_stay_consistent(registry: SeedRegistry, session_id: str):
    sequencer = SessionSequencer(registry)
    registry.commit_new_server_seed()

    def work(i: int):
        if i % 50 == 25:
            registry.rotate_server_seed()
            return None
        return sequencer.place("coinflip", session_id)

    with ThreadPoolExecutor(max_workers=8) as pool:
        records = [record for record in pool.map(work, range(200)) if record is not None]

    by_seed: dict[str, list[int]] = {}
    for record in records:
        by_seed.setdefault(record.server_seed_hash, []).append(record.nonce)
    for nonces in by_seed.values():
        assert sorted(nonces) == list(range(len(nonces)))

    for record in records:
        seed = registry.find_by_hash(record.server_seed_hash)
        plaintext = registry.disclose(seed.epoch_index)
        expected = generate_outcome("coinflip", plaintext, record.client_seed, record.nonce)
        assert record.interpreted_outcome == expected.value


class TestInMemoryNonceCounter:
    def test_counters_are_independent(self):
        counter = InMemoryNonceCounter()
        assert counter.next("a") == 0
        assert counter.next("a") == 1
        assert counter.next("b") == 0
        assert counter.peek("a") == 2
        assert counter.peek("unseen") == 0

    def test_release_only_rewinds_the_latest_nonce(self):
        counter = InMemoryNonceCounter()
        counter.next("a")
        counter.next("a")
        counter.release("a", 0)
        assert counter.peek("a") == 2
        counter.release("a", 1)
        assert counter.peek("a") == 1

    def test_discard_drops_the_counter(self):
        counter = InMemoryNonceCounter()
        counter.next("a")
        counter.next("b")
        assert len(counter) == 2
        counter.discard("a")
        counter.discard("never-seen")
        assert len(counter) == 1

    def test_start_from_resumes_unseen_seeds(self):
        calls: list[str] = []

        def start_from(server_seed_hash: str) -> int:
            calls.append(server_seed_hash)
            return 5

        counter = InMemoryNonceCounter(start_from=start_from)
        assert counter.next("a") == 5
        assert counter.next("a") == 6
        assert calls == ["a"]

    def test_sequencer_uses_injected_counter(self, registry: SeedRegistry, session_id: str):
        registry.commit_new_server_seed()
        sequencer = SessionSequencer(registry, InMemoryNonceCounter(start_from=lambda _: 41))

        assert sequencer.place("diceroll", session_id).nonce == 41
