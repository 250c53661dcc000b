"""Bairro - Services"""
from .errors import BairroError, RepositoryUnavailable, PhotoNotFound, PhotoRemovalFailed, InvalidPhotoName
from .photo_store import PhotoStore
from .repository import OccurrenceRepository

__all__ = [
    "BairroError", "RepositoryUnavailable", "PhotoNotFound", "PhotoRemovalFailed", "InvalidPhotoName",
    "PhotoStore",
    "OccurrenceRepository",
]
