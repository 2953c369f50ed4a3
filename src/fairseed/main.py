# src/fairseed/main.py
"""Main entry point for the Fairseed application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from fairseed.api.v1 import fairness_router, system_router
from fairseed.core.settings import settings
from fairseed.db.session import SessionLocal
from fairseed.services.fairness_service import FairnessService

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Fairseed API",
    description="Provably-fair commit-reveal outcome engine",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(fairness_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    # One service per process; it reloads the seed history from the database.
    service: FairnessService | None = getattr(app.state, "fairness_service", None)
    if service is None:
        service = FairnessService.from_settings(settings, SessionLocal)
        app.state.fairness_service = service
    active = service.registry.get_active_server_seed()
    if active is None:
        logger.warning("No active server seed; bets are refused until one is committed")
    else:
        logger.info(
            "Active server seed epoch=%d commitment=%s", active.epoch_index, active.hashed_value
        )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Fairseed API",
        "version": settings.app_version,
        "description": "Provably-fair commit-reveal outcome engine",
        "docs": "/docs",
        "redoc": "/redoc"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fairseed.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
