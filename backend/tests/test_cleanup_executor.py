"""
Tests for the Cleanup Executor.

1. Purge marks the exact row and removes all its photos
2. Purging twice is harmless (idempotent)
3. A photo that cannot be removed does not undo or fail the purge
4. A failed update skips that record's files, siblings carry on
5. Record batches run with bounded concurrency
6. Photos still used by another entry are kept
"""
import asyncio
import threading
import time

import pytest
from unittest.mock import MagicMock

from bairro.services.cleanup import CleanupExecutor
from bairro.services.errors import PhotoRemovalFailed, RepositoryUnavailable
from bairro.services.photo_store import PhotoStore


class FlakyPhotoStore(PhotoStore):
    """Photo store where some files cannot be removed."""

    def __init__(self, root, undeletable):
        super().__init__(root)
        self.undeletable = set(undeletable)

    def delete(self, filename):
        if filename in self.undeletable:
            raise PhotoRemovalFailed(filename, "Permission denied")
        return super().delete(filename)


# =============================================================================
# TEST: SINGLE RECORD
# =============================================================================

class TestPurgeOne:
    """Purge of one duplicate against a real table and photo store."""

    def test_marks_row_and_removes_photos(
        self, repository, photo_store, write_photo, add_occurrence, fetch_row, make_record
    ):
        photos = [write_photo(f"dup-{i}.jpg") for i in range(1, 4)]
        row_id = add_occurrence(photo1=photos[0], photo2=photos[1], photo3=photos[2])
        other_id = add_occurrence()

        outcome = CleanupExecutor(repository, photo_store).purge_one(
            make_record(row_id, photos=photos)
        )

        assert outcome.marked is True
        assert outcome.succeeded is True
        assert sorted(outcome.files_removed) == sorted(photos)
        assert not any(photo_store.exists(name) for name in photos)
        assert fetch_row(row_id).deleted_by_system is True
        # Only that row was touched
        assert fetch_row(other_id).deleted_by_system is False

    def test_purging_twice_is_harmless(
        self, repository, photo_store, write_photo, add_occurrence, fetch_row, make_record
    ):
        name = write_photo("dup.jpg")
        row_id = add_occurrence(photo1=name)
        executor = CleanupExecutor(repository, photo_store)
        record = make_record(row_id, photos=(name,))

        executor.purge_one(record)
        second = executor.purge_one(record)

        assert second.succeeded is True
        assert second.files_removed == []
        assert second.files_missing == [name]
        assert fetch_row(row_id).deleted_by_system is True

    def test_undeletable_photo_keeps_flag_and_siblings(
        self, repository, tmp_path, add_occurrence, fetch_row, make_record
    ):
        store = FlakyPhotoStore(tmp_path / "photos", undeletable={"p2.jpg"})
        store.ensure_root()
        names = ["p1.jpg", "p2.jpg", "p3.jpg", "p4.jpg"]
        for name in names:
            (store.root / name).write_bytes(b"jpeg")
        row_id = add_occurrence(photo1="p1.jpg", photo2="p2.jpg", photo3="p3.jpg", photo4="p4.jpg")

        outcome = CleanupExecutor(repository, store).purge_one(make_record(row_id, photos=names))

        assert outcome.succeeded is True
        assert outcome.files_failed == ["p2.jpg"]
        assert sorted(outcome.files_removed) == ["p1.jpg", "p3.jpg", "p4.jpg"]
        assert store.exists("p2.jpg")
        assert fetch_row(row_id).deleted_by_system is True

    def test_photo_used_by_another_entry_is_kept(
        self, repository, photo_store, write_photo, add_occurrence, fetch_row, make_record
    ):
        """A replayed submission shares filenames with the entry that survives."""
        write_photo("n1_same.jpg")
        write_photo("n1_own.jpg")
        replayed = add_occurrence(photo1="n1_same.jpg", photo2="n1_own.jpg")
        survivor = add_occurrence(photo1="n1_same.jpg")

        outcome = CleanupExecutor(repository, photo_store).purge_one(
            make_record(replayed, photos=("n1_same.jpg", "n1_own.jpg"))
        )

        assert outcome.succeeded is True
        assert outcome.files_shared == ["n1_same.jpg"]
        assert outcome.files_removed == ["n1_own.jpg"]
        assert photo_store.exists("n1_same.jpg")
        assert fetch_row(replayed).deleted_by_system is True
        assert fetch_row(survivor).deleted_by_system is False

    def test_photo_shared_with_deleted_entry_is_kept(
        self, repository, photo_store, write_photo, add_occurrence, make_record
    ):
        write_photo("n1_same.jpg")
        target = add_occurrence(photo1="n1_same.jpg")
        add_occurrence(photo3="n1_same.jpg", deleted_by_user=True)

        outcome = CleanupExecutor(repository, photo_store).purge_one(
            make_record(target, photos=("n1_same.jpg",))
        )

        assert outcome.files_shared == ["n1_same.jpg"]
        assert photo_store.exists("n1_same.jpg")

    def test_reference_check_failure_keeps_file(self, photo_store, write_photo, make_record):
        name = write_photo("keep.jpg")
        repository = MagicMock()
        repository.mark_deleted_by_system.return_value = True
        repository.photo_referenced_elsewhere.side_effect = RepositoryUnavailable("timeout")

        outcome = CleanupExecutor(repository, photo_store).purge_one(make_record("row-1", photos=(name,)))

        assert outcome.marked is True
        assert outcome.files_failed == [name]
        assert photo_store.exists(name)

    def test_update_failure_skips_files(self, photo_store, write_photo, make_record):
        name = write_photo("keep.jpg")
        repository = MagicMock()
        repository.mark_deleted_by_system.side_effect = RepositoryUnavailable("connection lost")

        outcome = CleanupExecutor(repository, photo_store).purge_one(make_record("row-1", photos=(name,)))

        assert outcome.marked is False
        assert outcome.succeeded is False
        assert "connection lost" in outcome.error
        assert photo_store.exists(name)

    def test_unknown_row_skips_files(self, photo_store, write_photo, make_record):
        name = write_photo("keep.jpg")
        repository = MagicMock()
        repository.mark_deleted_by_system.return_value = False

        outcome = CleanupExecutor(repository, photo_store).purge_one(make_record("row-1", photos=(name,)))

        assert outcome.succeeded is False
        assert outcome.error == "entry not found"
        assert photo_store.exists(name)

    def test_update_matches_on_row_id_only(self, photo_store, make_record):
        repository = MagicMock()
        repository.mark_deleted_by_system.return_value = True

        CleanupExecutor(repository, photo_store).purge_one(make_record("row-42", photos=()))

        repository.mark_deleted_by_system.assert_called_once_with("row-42")


# =============================================================================
# TEST: BATCH
# =============================================================================

class TestPurgeBatch:
    """purge() over several records."""

    def test_failure_of_one_record_does_not_block_others(self, photo_store, write_photo, make_record):
        write_photo("a.jpg")
        write_photo("b.jpg")
        repository = MagicMock()

        def mark(row_id):
            if row_id == "row-a":
                raise RepositoryUnavailable("deadlock")
            return True

        repository.mark_deleted_by_system.side_effect = mark
        repository.photo_referenced_elsewhere.return_value = False
        records = [make_record("row-a", photos=("a.jpg",)), make_record("row-b", photos=("b.jpg",))]

        outcomes = asyncio.run(CleanupExecutor(repository, photo_store).purge(records))

        assert [o.row_id for o in outcomes] == ["row-a", "row-b"]
        assert outcomes[0].succeeded is False
        assert outcomes[1].succeeded is True
        assert photo_store.exists("a.jpg")
        assert not photo_store.exists("b.jpg")

    def test_concurrency_is_bounded(self, photo_store, make_record):
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}

        def slow_mark(row_id):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
            time.sleep(0.05)
            with lock:
                state["active"] -= 1
            return True

        repository = MagicMock()
        repository.mark_deleted_by_system.side_effect = slow_mark
        records = [make_record(f"row-{i}", photos=()) for i in range(6)]

        outcomes = asyncio.run(CleanupExecutor(repository, photo_store, max_workers=2).purge(records))

        assert len(outcomes) == 6
        assert all(o.succeeded for o in outcomes)
        assert state["peak"] <= 2

    def test_empty_batch(self, photo_store):
        assert asyncio.run(CleanupExecutor(MagicMock(), photo_store).purge([])) == []

    def test_max_workers_must_be_positive(self, photo_store):
        with pytest.raises(ValueError):
            CleanupExecutor(MagicMock(), photo_store, max_workers=0)
