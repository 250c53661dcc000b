"""
Duplicate Scanner

AUTHORITY: SYSTEM
Finds occurrences submitted twice from the same device. A repeated submission
lands right after the original once rows are ordered by device and time, so
only neighbours are compared:

- same time of submission (HH:MM)
- same parish
- same device
- same anomaly code
- first photo of both present in the photo store and byte-identical

Only the first photo slot is compared. When a pair matches, the earlier row
is the duplicate; the later one survives. A run of three identical rows
yields the first two.

Missing photos never make a pair: without the evidence nothing is deleted.
"""
import logging
from typing import List, Sequence

from ...models.occurrence import OccurrenceRecord
from ..errors import PhotoNotFound
from ..photo_store import PhotoStore
from ..repository import OccurrenceRepository


logger = logging.getLogger(__name__)


def same_submission_fields(previous: OccurrenceRecord, current: OccurrenceRecord) -> bool:
    """Metadata half of the duplicate test."""
    return (
        previous.submitted_time == current.submitted_time
        and previous.parish == current.parish
        and previous.device_id == current.device_id
        and previous.anomaly_code == current.anomaly_code
    )


def same_first_photo(
    previous: OccurrenceRecord,
    current: OccurrenceRecord,
    photo_store: PhotoStore,
) -> bool:
    """Photo half of the duplicate test, false whenever a photo is missing."""
    photo_a = previous.first_photo
    photo_b = current.first_photo
    if not (photo_a and photo_b):
        return False
    if not (photo_store.exists(photo_a) and photo_store.exists(photo_b)):
        return False
    try:
        return photo_store.same_content(photo_a, photo_b)
    except PhotoNotFound as e:
        # Removed between the existence check and the read
        logger.debug(f"Photo vanished during comparison: {e}")
        return False


def find_duplicates(
    records: Sequence[OccurrenceRecord],
    photo_store: PhotoStore,
) -> List[OccurrenceRecord]:
    """
    Walk an ordered sequence pairwise and collect the earlier row of every
    duplicate pair, in the order found.

    Args:
        records: Occurrences ordered by device, then submission date/time
        photo_store: Where the photo slots are resolved

    Returns:
        Records to be marked deleted by the system
    """
    duplicates = []
    for i in range(1, len(records)):
        previous = records[i - 1]
        current = records[i]
        if same_submission_fields(previous, current) and same_first_photo(previous, current, photo_store):
            duplicates.append(previous)
    return duplicates


class DuplicateScanner:
    """
    Loads production occurrences and selects repeated submissions.

    Usage:
        scanner = DuplicateScanner(repository, photo_store)
        duplicates = scanner.scan()
    """

    def __init__(
        self,
        repository: OccurrenceRepository,
        photo_store: PhotoStore,
        include_deleted: bool = True,
    ):
        self.repository = repository
        self.photo_store = photo_store
        self.include_deleted = include_deleted

    def scan(self) -> List[OccurrenceRecord]:
        """
        Compute the set of duplicates to purge.

        Raises:
            RepositoryUnavailable: the fetch failed; nothing is returned
        """
        records = self.repository.fetch_production_ordered_by_device_and_time(
            include_deleted=self.include_deleted,
        )
        duplicates = find_duplicates(records, self.photo_store)
        logger.info(
            f"Scanned {len(records)} production entries, "
            f"{len(duplicates)} considered repeated and marked to be deleted"
        )
        return duplicates
