"""Bairro - API Routers"""
from .occurrences import router as occurrences_router
from .resolution import router as resolution_router
from .photos import router as photos_router
from .scheduler import router as scheduler_router

__all__ = [
    "occurrences_router",
    "resolution_router",
    "photos_router",
    "scheduler_router",
]
