# src/fairseed/db/time.py
"""Time utilities for models and seed bookkeeping."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)
