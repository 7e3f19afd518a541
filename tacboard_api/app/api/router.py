"""
Top-level API router.

Aggregates the domain routers; ``create_app`` mounts it under ``/api``.
"""

from fastapi import APIRouter

from .endpoints import combos

router = APIRouter()

router.include_router(combos.router, tags=["combos"])
