"""Versioned API router."""

from fastapi import APIRouter

from . import appointments, auth, availability, health, public

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(
    availability.router, prefix="/availability", tags=["availability"]
)
router.include_router(
    appointments.router, prefix="/appointments", tags=["appointments"]
)
router.include_router(public.router, prefix="/public", tags=["public"])

__all__ = ["router"]
