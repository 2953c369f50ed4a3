# src/fairseed/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import fairness_router, system_router

__all__ = [
    "fairness_router",
    "system_router",
]
