# src/fairseed/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .fairness import router as fairness_router
from .system import router as system_router

__all__ = [
    "fairness_router",
    "system_router",
]
