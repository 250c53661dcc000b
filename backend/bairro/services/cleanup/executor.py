"""
Cleanup Executor

AUTHORITY: SYSTEM
Applies the scanner's verdict. For each duplicate:

1. Set deleted_by_sys on that exact row (matched on table_row_uuid only)
2. If, and only if, the row was marked: remove each of its photo files that
   no other row still references

A missing file is a no-op. A file that cannot be removed is logged and
recorded, the flag stays set and the other slots are still attempted. A
failed update skips the files of that record only; the rest of the batch
carries on. Running a purge twice on the same record is harmless.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ...models.occurrence import OccurrenceRecord
from ..errors import InvalidPhotoName, PhotoRemovalFailed, RepositoryUnavailable
from ..photo_store import PhotoStore
from ..repository import OccurrenceRepository


logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


@dataclass
class PurgeOutcome:
    """Result of purging one record."""
    row_id: str
    marked: bool = False
    files_removed: List[str] = field(default_factory=list)
    files_missing: List[str] = field(default_factory=list)
    files_shared: List[str] = field(default_factory=list)
    files_failed: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.marked and self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "row_id": self.row_id,
            "marked": self.marked,
            "files_removed": list(self.files_removed),
            "files_missing": list(self.files_missing),
            "files_shared": list(self.files_shared),
            "files_failed": list(self.files_failed),
            "error": self.error,
        }


class CleanupExecutor:
    """
    Marks duplicates deleted by the system and removes their photos.

    Usage:
        executor = CleanupExecutor(repository, photo_store, max_workers=4)
        outcomes = await executor.purge(duplicates)
    """

    def __init__(
        self,
        repository: OccurrenceRepository,
        photo_store: PhotoStore,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.repository = repository
        self.photo_store = photo_store
        self.max_workers = max_workers

    async def purge(self, records: Sequence[OccurrenceRecord]) -> List[PurgeOutcome]:
        """
        Purge every record, at most max_workers at a time.

        Returns:
            One outcome per record, in input order
        """
        semaphore = asyncio.Semaphore(self.max_workers)

        async def purge_bounded(record: OccurrenceRecord) -> PurgeOutcome:
            async with semaphore:
                return await asyncio.to_thread(self.purge_one, record)

        outcomes = await asyncio.gather(*(purge_bounded(record) for record in records))

        failed = [outcome for outcome in outcomes if not outcome.succeeded]
        if failed:
            logger.error(f"{len(failed)} of {len(outcomes)} entries could not be marked as deleted")
        else:
            logger.debug("All entries to be deleted processed successfully")
        return list(outcomes)

    def purge_one(self, record: OccurrenceRecord) -> PurgeOutcome:
        """Mark one record deleted by the system, then remove its files."""
        outcome = PurgeOutcome(row_id=record.row_id)
        logger.debug(f"Entry is to be marked as deleted by system: {record.row_id}")

        try:
            outcome.marked = self.repository.mark_deleted_by_system(record.row_id)
        except RepositoryUnavailable as e:
            logger.error(f"Error marking entry {record.row_id} as deleted by system: {e}")
            outcome.error = str(e)
            return outcome

        if not outcome.marked:
            logger.warning(f"Entry {record.row_id} not found, its files are left in place")
            outcome.error = "entry not found"
            return outcome

        for filename in record.photo_files():
            self._remove_file(filename, outcome)

        return outcome

    def _remove_file(self, filename: str, outcome: PurgeOutcome) -> None:
        # A replayed submission carries the same filenames as its survivor
        try:
            shared = self.repository.photo_referenced_elsewhere(filename, outcome.row_id)
        except RepositoryUnavailable as e:
            logger.error(f"Could not check references of photo {filename}, keeping it: {e}")
            outcome.files_failed.append(filename)
            return
        if shared:
            logger.info(f"Photo {filename} of entry {outcome.row_id} is used by another entry, keeping it")
            outcome.files_shared.append(filename)
            return

        try:
            if self.photo_store.delete(filename):
                outcome.files_removed.append(filename)
            else:
                outcome.files_missing.append(filename)
        except PhotoRemovalFailed as e:
            logger.warning(str(e))
            outcome.files_failed.append(filename)
        except InvalidPhotoName as e:
            logger.warning(f"Skipping photo of entry {outcome.row_id}: {e}")
            outcome.files_failed.append(filename)
