"""
Orphan Photo Sweeper

Removes files in the photo store that no occurrence references in any of its
four slots. Clients insert the occurrence before uploading its photos, so a
file only counts as orphaned once it is older than the grace period.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from ..errors import PhotoRemovalFailed
from ..photo_store import PhotoStore
from ..repository import OccurrenceRepository


logger = logging.getLogger(__name__)


class OrphanPhotoSweeper:
    """
    Usage:
        sweeper = OrphanPhotoSweeper(repository, photo_store, grace=timedelta(hours=24))
        result = sweeper.sweep()
    """

    def __init__(
        self,
        repository: OccurrenceRepository,
        photo_store: PhotoStore,
        grace: timedelta = timedelta(hours=24),
    ):
        self.repository = repository
        self.photo_store = photo_store
        self.grace = grace

    def sweep(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Delete unreferenced photos older than the grace period.

        Raises:
            RepositoryUnavailable: references could not be loaded, nothing deleted
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - self.grace
        referenced = self.repository.referenced_photo_filenames()

        removed = []
        failed = []
        for filename, modified_at in self.photo_store.list_files():
            if filename in referenced or modified_at > cutoff:
                continue
            try:
                if self.photo_store.delete(filename):
                    removed.append(filename)
            except PhotoRemovalFailed as e:
                logger.warning(str(e))
                failed.append(filename)

        if removed:
            logger.info(f"Removed {len(removed)} orphaned photos")
        return {
            "orphans_removed": len(removed),
            "orphans_failed": len(failed),
        }
