"""System and transparency endpoints for the Fairseed API."""

from __future__ import annotations

import time

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from fairseed.core.fairness import HASH_ALGORITHM, SLICE_HEX_CHARS, GameKind
from fairseed.core.settings import settings

from ..dependencies import FairnessServiceDep, SessionDep

router = APIRouter(prefix="/system", tags=["system", "transparency"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings; suitable for transparency UIs.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "fairness": {
            "hash_algorithm": HASH_ALGORITHM,
            "slice_hex_chars": SLICE_HEX_CHARS,
            "server_seed_bits": settings.server_seed_bytes * 8,
            "seed_storage": "database",
            "game_kinds": [kind.value for kind in GameKind],
        },
    }


@router.get("/health")
async def get_system_health(db: SessionDep, service: FairnessServiceDep) -> dict[str, object]:
    """Health check covering the outcome store and the seed registry.

    Returns:
        Overall status plus per-component detail. The service is unhealthy
        while no committed seed is active, since bets would be refused.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {str(e)}"

    active = service.registry.get_active_server_seed()
    seed_status = "healthy" if active is not None else "unhealthy: no active server seed"

    healthy = db_status == "healthy" and active is not None
    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": int(time.time()),
        "components": {
            "database": db_status,
            "seed_registry": seed_status,
        },
        "active_epoch": active.epoch_index if active is not None else None,
        "version": settings.app_version,
    }
