"""
Bairro - FastAPI Dependencies

The repository and photo store are built in the application lifespan and kept
on app.state; routes reach them through these functions so tests can
override them.
"""
from fastapi import HTTPException, Request, status

from .services.cleanup import SweepScheduler
from .services.photo_store import PhotoStore
from .services.repository import OccurrenceRepository


def get_repository(request: Request) -> OccurrenceRepository:
    """Dependency for FastAPI - the shared occurrence repository."""
    return request.app.state.repository


def get_photo_store(request: Request) -> PhotoStore:
    """Dependency for FastAPI - the photo store."""
    return request.app.state.photo_store


def get_sweep_scheduler(request: Request) -> SweepScheduler:
    """Dependency for FastAPI - the running sweep scheduler."""
    scheduler = getattr(request.app.state, "sweep_scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Duplicate sweep is not running",
        )
    return scheduler
