# tests/services/test_fairness_service.py
import pytest

from fairseed.core.errors import (
    CommitmentMismatchError,
    FairnessViolationError,
    NoActiveSeedError,
    SeedNotFoundError,
    SeedNotRevealedError,
)
from fairseed.core.fairness import hash_server_seed
from fairseed.core.settings import Settings
from fairseed.repositories.outcome_repo import OutcomeRepository
from fairseed.services import FairnessService, InMemoryNonceCounter, SeedRegistry


@pytest.fixture
def service(registry: SeedRegistry) -> FairnessService:
    svc = FairnessService(registry)
    svc.ensure_active_seed()
    return svc


@pytest.fixture
def session_id(service: FairnessService) -> str:
    session_id, _ = service.open_session("player-xyz")
    return session_id


class TestFromSettings:
    def test_auto_commit(self, session_factory):
        svc = FairnessService.from_settings(Settings(AUTO_COMMIT_SEED=True), session_factory)
        assert isinstance(svc.sequencer.counter, InMemoryNonceCounter)
        assert svc.registry.get_active_server_seed() is not None

    def test_without_auto_commit(self, session_factory):
        svc = FairnessService.from_settings(Settings(AUTO_COMMIT_SEED=False), session_factory)
        with pytest.raises(NoActiveSeedError):
            svc.get_public_commitment()

    def test_restart_keeps_seeds_and_nonces(self, session_factory, db_session):
        config = Settings(AUTO_COMMIT_SEED=True)
        before = FairnessService.from_settings(config, session_factory)
        session_id, _ = before.open_session("player-xyz")
        record = before.place_bet("diceroll", session_id, store=OutcomeRepository(db_session))
        commitment = before.get_public_commitment()

        after = FairnessService.from_settings(config, session_factory)
        # The restarted process reuses the persisted active seed.
        assert after.get_public_commitment() == commitment
        assert len(after.seed_history()) == 1
        assert after.next_nonce() == record.nonce + 1

        after.reveal_and_rotate(record.epoch_index)
        seed, outcome = after.audit_record(record)
        assert seed.hashed_value == commitment
        assert outcome.to_json() == record.interpreted_outcome


def test_public_commitment_matches_active_seed(service: FairnessService):
    assert service.get_public_commitment() == service.active_seed().hashed_value


def test_generate_outcome_for_explicit_nonce(service: FairnessService, session_id: str):
    outcome = service.generate_outcome("diceroll", 3, session_id)
    plaintext = service.registry.disclose(0)
    assert service.verify("diceroll", plaintext, "player-xyz", 3, outcome.value)


def test_next_nonce_tracks_bets(service: FairnessService, session_id: str):
    assert service.next_nonce() == 0
    service.place_bet("coinflip", session_id)
    service.place_bet("coinflip", session_id)
    assert service.next_nonce() == 2


def test_reveal_and_rotate_active_seed(service: FairnessService):
    first = service.get_public_commitment()
    revealed = service.reveal_and_rotate(0)

    assert hash_server_seed(revealed) == first
    assert service.get_public_commitment() != first
    assert service.active_seed().epoch_index == 1
    assert service.next_nonce() == 0


def test_reveal_with_operator_plaintext(service: FairnessService):
    plaintext = service.registry.checkout_active()[1]
    assert service.reveal_and_rotate(0, plaintext) == plaintext
    assert service.seed_history()[0].revealed_value == plaintext


def test_reveal_with_wrong_plaintext_does_not_rotate(service: FairnessService):
    with pytest.raises(CommitmentMismatchError):
        service.reveal_and_rotate(0, "wrong")
    assert len(service.seed_history()) == 1
    assert service.active_seed().epoch_index == 0


def test_reveal_older_seed_keeps_active(service: FairnessService):
    service.registry.rotate_server_seed()
    service.reveal_and_rotate(0)
    history = service.seed_history()
    assert len(history) == 2
    assert service.active_seed().epoch_index == 1


def test_reveal_unknown_epoch(service: FairnessService):
    with pytest.raises(SeedNotFoundError):
        service.reveal_and_rotate(5)


def test_reveal_drops_the_nonce_counter(service: FairnessService, session_id: str):
    service.place_bet("coinflip", session_id)
    assert len(service.sequencer.counter) == 1
    service.reveal_and_rotate(0)
    service.place_bet("coinflip", session_id)
    # Only the new active seed still has a counter.
    assert len(service.sequencer.counter) == 1


def test_sessions_keep_their_own_client_seed(service: FairnessService, session_id: str):
    other, _ = service.open_session()
    service.set_client_seed(other, "someone-else")
    record = service.place_bet("diceroll", session_id)
    assert record.client_seed == "player-xyz"
    assert service.client_seed(session_id).value == "player-xyz"


class TestAuditRecord:
    def test_audit_after_reveal(self, service: FairnessService, session_id: str):
        record = service.place_bet("slots", session_id)
        service.reveal_and_rotate(record.epoch_index)
        seed, outcome = service.audit_record(record)
        assert seed.revealed_value is not None
        assert outcome.to_json() == record.interpreted_outcome

    def test_audit_before_reveal(self, service: FairnessService, session_id: str):
        record = service.place_bet("slots", session_id)
        with pytest.raises(SeedNotRevealedError):
            service.audit_record(record)

    def test_audit_unknown_seed_names_the_hash(self, service: FairnessService, session_id: str):
        record = service.place_bet("coinflip", session_id)
        record.server_seed_hash = "f" * 64
        with pytest.raises(SeedNotFoundError, match="f" * 64):
            service.audit_record(record)

    def test_audit_detects_tampering(self, service: FairnessService, session_id: str):
        record = service.place_bet("diceroll", session_id)
        service.reveal_and_rotate(record.epoch_index)
        record.interpreted_outcome = record.interpreted_outcome % 100 + 1
        with pytest.raises(FairnessViolationError):
            service.audit_record(record)
