"""
Bairro - Occurrence value objects

Immutable snapshots of occurrence rows handed between the repository and the
cleanup sweep. Sessions are closed by the time a record reaches the scanner,
so nothing here is bound to the ORM.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

PHOTO_SLOTS = 4


@dataclass(frozen=True)
class OccurrenceRecord:
    """One occurrence as seen by the duplicate sweep."""
    row_id: str
    device_id: str
    submitted_date: Optional[str]
    submitted_time: Optional[str]
    parish: Optional[str]
    anomaly_code: Optional[str]
    photo_refs: Tuple[Optional[str], ...] = field(default=(None,) * PHOTO_SLOTS)
    is_production: bool = True
    resolved_by_user: bool = False
    resolved_by_parish: bool = False
    resolved_by_municipality: bool = False
    deleted_by_admin: bool = False
    deleted_by_user: bool = False
    deleted_by_system: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_live(self) -> bool:
        return not (self.deleted_by_admin or self.deleted_by_user or self.deleted_by_system)

    @property
    def first_photo(self) -> Optional[str]:
        return self.photo_refs[0] if self.photo_refs else None

    def photo_files(self) -> List[str]:
        """Filenames of the non-empty photo slots, in slot order."""
        return [name for name in self.photo_refs if name]

    @classmethod
    def from_row(cls, row) -> "OccurrenceRecord":
        """Build a record from an OccurrenceDB row."""
        photos = (row.photo1, row.photo2, row.photo3, row.photo4)
        return cls(
            row_id=row.row_id,
            device_id=row.device_id,
            submitted_date=row.submitted_date,
            submitted_time=row.submitted_time,
            parish=row.parish,
            anomaly_code=row.anomaly_code,
            photo_refs=tuple(name or None for name in photos),
            is_production=bool(row.is_production),
            resolved_by_user=bool(row.resolved_by_user),
            resolved_by_parish=bool(row.resolved_by_parish),
            resolved_by_municipality=bool(row.resolved_by_municipality),
            deleted_by_admin=bool(row.deleted_by_admin),
            deleted_by_user=bool(row.deleted_by_user),
            deleted_by_system=bool(row.deleted_by_system),
            created_at=row.created_at,
        )
