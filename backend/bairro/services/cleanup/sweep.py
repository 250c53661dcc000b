"""
Duplicate Sweep

One execution of the periodic cleanup:

1. DuplicateScanner.scan() - find repeated submissions
2. CleanupExecutor.purge() - mark them deleted by system, remove their photos
3. OrphanPhotoSweeper.sweep() - remove photos nobody references (optional)

A failed fetch aborts step 2 only; the next sweep retries naturally.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..errors import RepositoryUnavailable
from .executor import CleanupExecutor
from .orphans import OrphanPhotoSweeper
from .scanner import DuplicateScanner


logger = logging.getLogger(__name__)


class DuplicateSweep:
    """
    Usage:
        sweep = DuplicateSweep(scanner, executor, orphan_sweeper)
        result = await sweep.run()
    """

    def __init__(
        self,
        scanner: DuplicateScanner,
        executor: CleanupExecutor,
        orphan_sweeper: Optional[OrphanPhotoSweeper] = None,
    ):
        self.scanner = scanner
        self.executor = executor
        self.orphan_sweeper = orphan_sweeper

    async def preview(self) -> Dict[str, Any]:
        """Scan only. Nothing is written or removed."""
        duplicates = await asyncio.to_thread(self.scanner.scan)
        return {
            "count": len(duplicates),
            "duplicates": [
                {
                    "table_row_uuid": record.row_id,
                    "uuid": record.device_id,
                    "data_data": record.submitted_date,
                    "data_hora": record.submitted_time,
                    "foto1": record.first_photo,
                }
                for record in duplicates
            ],
        }

    async def run(self) -> Dict[str, Any]:
        """
        Run one sweep.

        Returns:
            Summary of every job, with an overall status
        """
        started_at = datetime.now(timezone.utc)
        results = {
            "started_at": started_at.isoformat(),
            "jobs": {},
        }

        # 1-2. Duplicates
        try:
            duplicates = await asyncio.to_thread(self.scanner.scan)
        except RepositoryUnavailable as e:
            results["jobs"]["duplicates"] = {
                "status": "error",
                "error": str(e),
            }
            logger.error(f"removeDuplicates: error querying the database: {e}")
        else:
            outcomes = await self.executor.purge(duplicates)
            results["jobs"]["duplicates"] = {
                "status": "success",
                "found": len(duplicates),
                "marked": sum(1 for o in outcomes if o.marked),
                "failed": [o.to_dict() for o in outcomes if not o.succeeded],
                "files_removed": sum(len(o.files_removed) for o in outcomes),
                "files_shared": sum(len(o.files_shared) for o in outcomes),
                "files_failed": sum(len(o.files_failed) for o in outcomes),
            }

        # 3. Orphaned photos
        if self.orphan_sweeper is not None:
            try:
                orphans = await asyncio.to_thread(self.orphan_sweeper.sweep)
                results["jobs"]["orphan_photos"] = {"status": "success", **orphans}
            except (RepositoryUnavailable, OSError) as e:
                results["jobs"]["orphan_photos"] = {
                    "status": "error",
                    "error": str(e),
                }
                logger.error(f"Orphan photo cleanup failed: {e}")

        completed_at = datetime.now(timezone.utc)
        results["completed_at"] = completed_at.isoformat()
        results["duration_seconds"] = (completed_at - started_at).total_seconds()
        results["status"] = (
            "success"
            if all(job["status"] == "success" for job in results["jobs"].values())
            else "error"
        )
        logger.info(f"Duplicate sweep finished: {results['status']} in {results['duration_seconds']:.2f}s")
        return results
