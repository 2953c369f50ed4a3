"""Schemas for commitments, wagers and verification requests."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fairseed.core.fairness import GameKind


class CommitmentOut(BaseModel):
    """Public commitment shown to players before they bet."""

    hashed_value: str = Field(..., description="SHA-256 hex digest of the active server seed")
    epoch_index: int
    created_at: datetime
    next_nonce: int = Field(..., description="Nonce the next wager will be assigned")


class ServerSeedOut(BaseModel):
    """Public view of one seed history entry."""

    hashed_value: str
    epoch_index: int
    created_at: datetime
    used_at: datetime | None = None
    revealed_value: str | None = Field(
        None, description="Plaintext, present only once the seed has been revealed"
    )
    active: bool = False

    model_config = ConfigDict(from_attributes=True)


class ClientSeedIn(BaseModel):
    """Request to replace the calling session's client seed."""

    value: str = Field(..., min_length=1, description="New client seed")


class ClientSeedOut(BaseModel):
    value: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SessionCreate(BaseModel):
    """Request to open a player session, optionally with the player's own seed."""

    client_seed: str | None = Field(None, min_length=1)


class SessionOut(BaseModel):
    """A new player session; ``token`` authenticates its client seed and bets."""

    session_id: str
    token: str
    client_seed: ClientSeedOut


class BetCreate(BaseModel):
    """Request to play one game against the active seed.

    A ``client_seed`` sent with the bet is used for it and becomes the
    session's seed from then on.
    """

    game_kind: GameKind
    client_seed: str | None = Field(None, min_length=1)


class OutcomeOut(BaseModel):
    """Stored outcome record; never includes the server seed plaintext."""

    id: int
    game_kind: GameKind
    server_seed_hash: str
    epoch_index: int
    client_seed: str
    nonce: int
    digest_hex: str
    raw_output: list[int]
    interpreted_outcome: Any
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RevealIn(BaseModel):
    """Operator request to reveal a seed.

    Leaving ``plaintext`` empty discloses the plaintext the service holds.
    """

    plaintext: str | None = None


class RevealOut(BaseModel):
    epoch_index: int
    hashed_value: str
    revealed_value: str
    next_commitment: str


class VerifyIn(BaseModel):
    """Player-facing verification request for a past game."""

    game_kind: GameKind
    server_seed: str = Field(..., min_length=1, description="Revealed server seed plaintext")
    client_seed: str = Field(..., min_length=1)
    nonce: int = Field(..., ge=0)
    claimed_outcome: Any = Field(
        ..., description="'heads'/'tails', an integer, or a list of slot symbols"
    )
    server_seed_hash: str | None = Field(
        None, description="Published commitment the server seed must match"
    )


class VerifyOut(BaseModel):
    valid: bool
    computed_outcome: Any
    digest_hex: str
    raw_output: list[int]


class AuditOut(BaseModel):
    """Result of re-deriving a stored record from its revealed seed."""

    outcome_id: int
    valid: bool
    revealed_server_seed: str
    computed_outcome: Any
