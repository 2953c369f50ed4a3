# src/fairseed/models/__init__.py
"""SQLAlchemy models for the Fairseed application."""

from .outcome import OutcomeRecord
from .server_seed import ServerSeedRecord

__all__ = ["OutcomeRecord", "ServerSeedRecord"]
