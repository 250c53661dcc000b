"""
Occurrence Repository

All access to the occurrences table goes through here. Every operation opens
its own session from the injected factory and closes it before returning, so
no caller holds a pooled connection across unrelated work.

Database failures surface as RepositoryUnavailable.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Set
from uuid import uuid4

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..models.db_models import OccurrenceDB
from ..models.occurrence import OccurrenceRecord
from .errors import RepositoryUnavailable


logger = logging.getLogger(__name__)


# Fields readable by anyone. Names, contact details of the reporter and
# the confirmation keys stay private.
PUBLIC_FIELDS = [
    "table_row_uuid", "uuid", "foto1", "foto2", "foto3", "foto4",
    "data_data", "data_hora", "data_concelho", "data_freguesia", "data_local",
    "data_num_porta", "data_coord_latit", "data_coord_long", "anomaly1", "anomaly2",
    "anomaly_code", "email_concelho", "email_freguesia", "ocorrencia_resolvida",
    "ocorrencia_resolvida_por_op", "ocorrencia_resolvida_por_municipio",
    "ocorrencia_resolvida_por_freguesia", "ocorrencia_resolvida_por_utilizadores_adicionais",
]

# Columns a client may set on submission. Everything else is server owned.
SUBMITTABLE_FIELDS = {
    "PROD", "uuid", "foto1", "foto2", "foto3", "foto4",
    "data_data", "data_hora", "data_concelho", "data_freguesia", "data_local",
    "data_num_porta", "data_coord_latit", "data_coord_long", "anomaly1", "anomaly2",
    "anomaly_code", "email_concelho", "email_freguesia",
}

_ATTRIBUTES = {column.name: attr for attr, column in OccurrenceDB.__mapper__.columns.items()}


def _live_filter():
    return [
        OccurrenceDB.deleted_by_admin.is_(False),
        OccurrenceDB.deleted_by_user.is_(False),
        OccurrenceDB.deleted_by_system.is_(False),
    ]


def sweep_ordering():
    """Device, date, time, then insertion. Rows from before created_at existed come first."""
    return [
        OccurrenceDB.device_id.asc(),
        OccurrenceDB.submitted_date.asc(),
        OccurrenceDB.submitted_time.asc(),
        OccurrenceDB.created_at.asc().nulls_first(),
    ]


def to_public_dict(row: OccurrenceDB) -> Dict[str, Any]:
    """Serialize a row with its table column names, booleans as 0/1."""
    output = {}
    for name in PUBLIC_FIELDS:
        value = getattr(row, _ATTRIBUTES[name])
        if isinstance(value, bool):
            value = int(value)
        output[name] = value
    return output


class OccurrenceRepository:
    """
    Relational store of occurrence reports.

    Usage:
        repository = OccurrenceRepository(SessionLocal)
        records = repository.fetch_production_ordered_by_device_and_time()
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self, operation: str):
        session: Session = self.session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error during {operation}: {e}")
            raise RepositoryUnavailable(f"{operation} failed: {e}")
        finally:
            session.close()

    # =========================================================================
    # CLEANUP SWEEP
    # =========================================================================

    def fetch_production_ordered_by_device_and_time(
        self,
        include_deleted: bool = True,
    ) -> List[OccurrenceRecord]:
        """
        All production occurrences, grouped by device and in submission order.

        Args:
            include_deleted: When False, rows with any delete flag set are left out

        Returns:
            Records ordered by device, date, time and insertion
        """
        with self._session("fetch production occurrences") as session:
            query = session.query(OccurrenceDB).filter(OccurrenceDB.is_production.is_(True))
            if not include_deleted:
                query = query.filter(*_live_filter())
            rows = query.order_by(*sweep_ordering()).all()
            return [OccurrenceRecord.from_row(row) for row in rows]

    def mark_deleted_by_system(self, row_id: str) -> bool:
        """
        Set deleted_by_sys on exactly one row.

        Returns:
            True if the row exists (flag now set), False if no row has that id
        """
        with self._session("mark deleted by system") as session:
            updated = (
                session.query(OccurrenceDB)
                .filter(OccurrenceDB.row_id == row_id)
                .update({OccurrenceDB.deleted_by_system: True}, synchronize_session=False)
            )
            session.commit()
            return updated == 1

    def referenced_photo_filenames(self) -> Set[str]:
        """Every filename referenced by any row, deleted rows included."""
        with self._session("fetch photo references") as session:
            rows = session.query(
                OccurrenceDB.photo1, OccurrenceDB.photo2, OccurrenceDB.photo3, OccurrenceDB.photo4,
            ).all()
            return {name for row in rows for name in row if name}

    def photo_referenced_elsewhere(self, filename: str, row_id: str) -> bool:
        """True if a row other than row_id, deleted or not, uses filename in any slot."""
        with self._session("check photo references") as session:
            match = (
                session.query(OccurrenceDB.row_id)
                .filter(
                    OccurrenceDB.row_id != row_id,
                    or_(
                        OccurrenceDB.photo1 == filename,
                        OccurrenceDB.photo2 == filename,
                        OccurrenceDB.photo3 == filename,
                        OccurrenceDB.photo4 == filename,
                    ),
                )
                .first()
            )
            return match is not None

    # =========================================================================
    # SUBMISSIONS
    # =========================================================================

    def insert(self, values: Dict[str, Any]) -> str:
        """
        Insert a new occurrence from client column values.

        Server-owned columns (row id, keys, flags) are expected to be set by
        the caller; unknown columns are ignored. Returns the row id.
        """
        attributes = {
            _ATTRIBUTES[name]: value
            for name, value in values.items()
            if name in _ATTRIBUTES
        }
        attributes.setdefault("row_id", str(uuid4()))
        with self._session("insert occurrence") as session:
            session.add(OccurrenceDB(**attributes))
            session.commit()
        return attributes["row_id"]

    def set_solved_status(self, device_id: str, row_id: str, solved: bool) -> int:
        """User marks an occurrence (un)solved; the user decision takes priority."""
        with self._session("set solved status") as session:
            updated = (
                session.query(OccurrenceDB)
                .filter(OccurrenceDB.device_id == device_id, OccurrenceDB.row_id == row_id)
                .update(
                    {OccurrenceDB.resolved: solved, OccurrenceDB.resolved_by_user: solved},
                    synchronize_session=False,
                )
            )
            session.commit()
            return updated

    def mark_deleted_by_admin(self, device_id: str, row_id: str) -> int:
        return self._set_flag(device_id, row_id, OccurrenceDB.deleted_by_admin, "mark deleted by admin")

    def mark_deleted_by_user(self, device_id: str, row_id: str) -> int:
        return self._set_flag(device_id, row_id, OccurrenceDB.deleted_by_user, "mark deleted by user")

    def _set_flag(self, device_id: str, row_id: str, flag, operation: str) -> int:
        with self._session(operation) as session:
            updated = (
                session.query(OccurrenceDB)
                .filter(OccurrenceDB.device_id == device_id, OccurrenceDB.row_id == row_id)
                .update({flag: True}, synchronize_session=False)
            )
            session.commit()
            return updated

    # =========================================================================
    # AUTHORITY CONFIRMATION
    # =========================================================================

    def get_confirmation_keys(self, row_id: str) -> Optional[Dict[str, Optional[str]]]:
        """Keys of one occurrence, or None if the row does not exist."""
        with self._session("fetch confirmation keys") as session:
            row = session.query(OccurrenceDB).filter(OccurrenceDB.row_id == row_id).first()
            if row is None:
                return None
            return {
                "parish": row.parish_key,
                "municipality": row.municipality_key,
            }

    def mark_resolved_by_authority(self, row_id: str, authority: str) -> int:
        """authority is 'parish' or 'municipality'."""
        flags = {
            "parish": OccurrenceDB.resolved_by_parish,
            "municipality": OccurrenceDB.resolved_by_municipality,
        }
        if authority not in flags:
            raise ValueError(f"Unknown authority: {authority}")
        with self._session(f"mark resolved by {authority}") as session:
            updated = (
                session.query(OccurrenceDB)
                .filter(OccurrenceDB.row_id == row_id)
                .update({flags[authority]: True}, synchronize_session=False)
            )
            session.commit()
            return updated

    # =========================================================================
    # HISTORIC QUERIES
    # =========================================================================

    def list_live_for_device(self, device_id: str) -> List[Dict[str, Any]]:
        """Every live occurrence of one device, oldest first."""
        with self._session("fetch device historic") as session:
            rows = (
                session.query(OccurrenceDB)
                .filter(OccurrenceDB.device_id == device_id, *_live_filter())
                .order_by(OccurrenceDB.submitted_date.asc())
                .all()
            )
            return [to_public_dict(row) for row in rows]

    def get_public(self, row_id: str) -> List[Dict[str, Any]]:
        """A single occurrence by row id, whatever its state (empty list if unknown)."""
        with self._session("fetch occurrence") as session:
            rows = session.query(OccurrenceDB).filter(OccurrenceDB.row_id == row_id).all()
            return [to_public_dict(row) for row in rows]

    def list_open_production(self) -> List[Dict[str, Any]]:
        """All live, unresolved production occurrences, for the public map."""
        with self._session("fetch open occurrences") as session:
            rows = (
                session.query(OccurrenceDB)
                .filter(
                    OccurrenceDB.is_production.is_(True),
                    OccurrenceDB.resolved.is_(False),
                    *_live_filter(),
                )
                .order_by(OccurrenceDB.device_id.asc(), OccurrenceDB.submitted_date.asc())
                .all()
            )
            return [to_public_dict(row) for row in rows]
