# src/fairseed/services/__init__.py
"""Business logic services for the Fairseed application."""

from .seed_registry import ClientSeed, SeedRegistry, ServerSeed
from .sequencer import InMemoryNonceCounter, SessionSequencer
from .fairness_service import FairnessService

__all__ = [
    "ClientSeed",
    "FairnessService",
    "InMemoryNonceCounter",
    "SeedRegistry",
    "ServerSeed",
    "SessionSequencer",
]
