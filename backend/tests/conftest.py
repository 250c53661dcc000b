"""
Shared fixtures: an in-memory SQLite occurrences table, a photo store in a
temporary directory, and helpers to create rows, records and photos.
"""
from datetime import datetime, timedelta
from itertools import count

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bairro.database import Base
from bairro.models.db_models import OccurrenceDB
from bairro.models.occurrence import OccurrenceRecord
from bairro.services.photo_store import PhotoStore
from bairro.services.repository import OccurrenceRepository


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def repository(session_factory):
    return OccurrenceRepository(session_factory)


@pytest.fixture
def photo_store(tmp_path):
    store = PhotoStore(tmp_path / "uploadedImages")
    store.ensure_root()
    return store


@pytest.fixture
def write_photo(photo_store):
    """Write a photo into the store and return its name."""
    def _write(name: str, data: bytes = b"\xff\xd8jpeg-data\xff\xd9") -> str:
        (photo_store.root / name).write_bytes(data)
        return name
    return _write


_row_numbers = count(1)


@pytest.fixture
def add_occurrence(session_factory):
    """Insert an occurrence row directly and return its row id."""
    base_time = datetime(2024, 5, 1, 12, 0, 0)

    def _add(**overrides) -> str:
        n = next(_row_numbers)
        values = {
            "row_id": f"row-{n:04d}",
            "device_id": "device-a",
            "is_production": True,
            "photo1": "",
            "photo2": "",
            "photo3": "",
            "photo4": "",
            "submitted_date": "2024-05-01",
            "submitted_time": "10:30",
            "municipality": "Lisboa",
            "parish": "Arroios",
            "anomaly_code": "A1",
            "created_at": base_time + timedelta(seconds=n),
        }
        values.update(overrides)
        db = session_factory()
        try:
            db.add(OccurrenceDB(**values))
            db.commit()
        finally:
            db.close()
        return values["row_id"]
    return _add


@pytest.fixture
def fetch_row(session_factory):
    """Read an occurrence row back (detached)."""
    def _fetch(row_id: str) -> OccurrenceDB:
        db = session_factory()
        try:
            row = db.query(OccurrenceDB).filter(OccurrenceDB.row_id == row_id).one()
            db.expunge(row)
            return row
        finally:
            db.close()
    return _fetch


def _make_record(row_id: str, photos=("p.jpg",), **overrides) -> OccurrenceRecord:
    padded = tuple(photos) + (None,) * (4 - len(photos))
    values = {
        "row_id": row_id,
        "device_id": "device-a",
        "submitted_date": "2024-05-01",
        "submitted_time": "10:30",
        "parish": "Arroios",
        "anomaly_code": "A1",
        "photo_refs": padded,
    }
    values.update(overrides)
    return OccurrenceRecord(**values)


@pytest.fixture
def make_record():
    """OccurrenceRecord with matching defaults, for scanner and executor tests."""
    return _make_record
