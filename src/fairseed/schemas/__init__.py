# src/fairseed/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .fairness import (
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

__all__ = [
    "AuditOut",
    "BetCreate",
    "ClientSeedIn", "ClientSeedOut",
    "CommitmentOut",
    "OutcomeOut",
    "RevealIn", "RevealOut",
    "ServerSeedOut",
    "SessionCreate", "SessionOut",
    "VerifyIn", "VerifyOut",
]
