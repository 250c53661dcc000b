"""Bairro - Data Models"""
from .occurrence import OccurrenceRecord, PHOTO_SLOTS

__all__ = [
    "OccurrenceRecord", "PHOTO_SLOTS",
]
