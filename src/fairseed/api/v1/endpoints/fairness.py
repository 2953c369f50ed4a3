"""Provably-fair endpoints: commitments, wagers, reveals and verification."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from fairseed.core.errors import (
    CommitmentMismatchError,
    FairnessError,
    FairnessViolationError,
    InvalidInputError,
    NoActiveSeedError,
    OutcomeNotRecordedError,
    SeedNotFoundError,
    SeedNotRevealedError,
    WrongSeedReferenceError,
)
from fairseed.core.fairness import PROTOCOL
from fairseed.models.outcome import OutcomeRecord
from fairseed.schemas.fairness import (
    AuditOut,
    BetCreate,
    ClientSeedIn,
    ClientSeedOut,
    CommitmentOut,
    OutcomeOut,
    RevealIn,
    RevealOut,
    ServerSeedOut,
    SessionCreate,
    SessionOut,
    VerifyIn,
    VerifyOut,
)
from fairseed.services import verifier

from ..dependencies import (
    FairnessServiceDep,
    OperatorDep,
    OutcomeRepositoryDep,
    PlayerSessionDep,
    create_player_token,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fairness", tags=["fairness"])

DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 1000

_ERROR_STATUS: dict[type[FairnessError], int] = {
    InvalidInputError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NoActiveSeedError: status.HTTP_503_SERVICE_UNAVAILABLE,
    SeedNotFoundError: status.HTTP_404_NOT_FOUND,
    SeedNotRevealedError: status.HTTP_409_CONFLICT,
    WrongSeedReferenceError: status.HTTP_400_BAD_REQUEST,
    CommitmentMismatchError: status.HTTP_409_CONFLICT,
    FairnessViolationError: status.HTTP_409_CONFLICT,
    OutcomeNotRecordedError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _http_error(err: FairnessError) -> HTTPException:
    """Translate a domain error into the HTTP status clients see."""
    for err_type in type(err).__mro__:
        code = _ERROR_STATUS.get(err_type)  # type: ignore[arg-type]
        if code is not None:
            return HTTPException(status_code=code, detail=str(err))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(err))


def _get_outcome_or_404(repo: OutcomeRepositoryDep, outcome_id: int) -> OutcomeRecord:
    record = repo.get_by_id(outcome_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Outcome not found")
    return record


@router.get("/protocol")
async def get_protocol() -> dict[str, object]:
    """Describe the fixed hashing protocol so third parties can reimplement it."""
    return PROTOCOL


@router.get("/commitment", response_model=CommitmentOut)
async def get_commitment(service: FairnessServiceDep) -> CommitmentOut:
    """Return the hash of the active server seed, displayable before betting."""
    try:
        seed = service.active_seed()
        next_nonce = service.next_nonce()
    except FairnessError as err:
        raise _http_error(err) from err
    return CommitmentOut(
        hashed_value=seed.hashed_value,
        epoch_index=seed.epoch_index,
        created_at=seed.created_at,
        next_nonce=next_nonce,
    )


@router.post("/sessions", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def open_session(payload: SessionCreate, service: FairnessServiceDep) -> SessionOut:
    """Open a player session and return the token that owns its client seed."""
    try:
        session_id, seed = service.open_session(payload.client_seed)
    except FairnessError as err:
        raise _http_error(err) from err
    return SessionOut(
        session_id=session_id,
        token=create_player_token(session_id),
        client_seed=ClientSeedOut.model_validate(seed),
    )


@router.get("/client-seed", response_model=ClientSeedOut)
async def get_client_seed(session_id: PlayerSessionDep, service: FairnessServiceDep) -> ClientSeedOut:
    """Return the client seed this session mixes into its outcomes."""
    return ClientSeedOut.model_validate(service.client_seed(session_id))


@router.put("/client-seed", response_model=ClientSeedOut)
async def put_client_seed(
    payload: ClientSeedIn,
    session_id: PlayerSessionDep,
    service: FairnessServiceDep,
) -> ClientSeedOut:
    """Replace this session's client seed for subsequent wagers."""
    try:
        seed = service.set_client_seed(session_id, payload.value)
    except FairnessError as err:
        raise _http_error(err) from err
    return ClientSeedOut.model_validate(seed)


@router.post("/bets", response_model=OutcomeOut, status_code=status.HTTP_201_CREATED)
async def place_bet(
    payload: BetCreate,
    session_id: PlayerSessionDep,
    service: FairnessServiceDep,
    repo: OutcomeRepositoryDep,
) -> OutcomeOut:
    """Play one game against the active seed and store its verifiable record."""
    try:
        record = service.place_bet(
            payload.game_kind, session_id, store=repo, client_seed=payload.client_seed
        )
    except FairnessError as err:
        raise _http_error(err) from err
    return OutcomeOut.model_validate(record)


@router.get("/seeds", response_model=list[ServerSeedOut])
async def list_seeds(service: FairnessServiceDep) -> list[ServerSeedOut]:
    """Return the seed history; plaintexts appear only for revealed seeds."""
    active = service.registry.get_active_server_seed()
    active_epoch = active.epoch_index if active is not None else None
    return [
        ServerSeedOut(
            hashed_value=seed.hashed_value,
            epoch_index=seed.epoch_index,
            created_at=seed.created_at,
            used_at=seed.used_at,
            revealed_value=seed.revealed_value,
            active=seed.epoch_index == active_epoch,
        )
        for seed in service.seed_history()
    ]


@router.post("/seeds/{epoch_index}/reveal", response_model=RevealOut)
async def reveal_seed(
    epoch_index: int,
    payload: RevealIn,
    service: FairnessServiceDep,
    operator: OperatorDep,
) -> RevealOut:
    """Reveal a server seed and rotate to a fresh commitment (operators only)."""
    try:
        revealed = service.reveal_and_rotate(epoch_index, payload.plaintext)
        seed = service.registry.get_seed(epoch_index)
        next_commitment = service.get_public_commitment()
    except FairnessError as err:
        raise _http_error(err) from err
    logger.info("Operator %s revealed server seed epoch=%d", operator, epoch_index)
    return RevealOut(
        epoch_index=epoch_index,
        hashed_value=seed.hashed_value,
        revealed_value=revealed,
        next_commitment=next_commitment,
    )


@router.post("/verify", response_model=VerifyOut)
async def verify_outcome(payload: VerifyIn, service: FairnessServiceDep) -> VerifyOut:
    """Recompute a past game from its revealed seed triple and compare the claim."""
    try:
        valid = service.verify(
            payload.game_kind,
            payload.server_seed,
            payload.client_seed,
            payload.nonce,
            payload.claimed_outcome,
            commitment=payload.server_seed_hash,
        )
        outcome = verifier.recompute(
            payload.game_kind, payload.server_seed, payload.client_seed, payload.nonce
        )
    except FairnessError as err:
        raise _http_error(err) from err
    return VerifyOut(
        valid=valid,
        computed_outcome=outcome.to_json(),
        digest_hex=outcome.digest_hex,
        raw_output=list(outcome.raw_output),
    )


@router.get("/outcomes", response_model=list[OutcomeOut])
async def list_outcomes(
    repo: OutcomeRepositoryDep,
    server_seed_hash: str | None = None,
    limit: int = Query(DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
) -> list[OutcomeOut]:
    """List stored outcomes, optionally restricted to one server seed."""
    if server_seed_hash:
        records = repo.list_for_seed(server_seed_hash, limit=limit)
    else:
        records = repo.list_recent(limit)
    return [OutcomeOut.model_validate(record) for record in records]


@router.get("/outcomes/{outcome_id}", response_model=OutcomeOut)
async def get_outcome(outcome_id: int, repo: OutcomeRepositoryDep) -> OutcomeOut:
    """Return one stored outcome."""
    return OutcomeOut.model_validate(_get_outcome_or_404(repo, outcome_id))


@router.get("/outcomes/{outcome_id}/audit", response_model=AuditOut)
async def audit_outcome(
    outcome_id: int,
    repo: OutcomeRepositoryDep,
    service: FairnessServiceDep,
) -> AuditOut:
    """Re-derive a stored outcome from its revealed seed.

    Responds 409 while the seed is still secret and on any fairness violation.
    """
    record = _get_outcome_or_404(repo, outcome_id)
    try:
        seed, outcome = service.audit_record(record)
    except FairnessError as err:
        raise _http_error(err) from err
    return AuditOut(
        outcome_id=record.id,
        valid=True,
        revealed_server_seed=seed.revealed_value or "",
        computed_outcome=outcome.to_json(),
    )
