"""
Cleanup Sweep Services

Periodic garbage collection of repeated submissions and orphaned photos.

- DuplicateScanner: selects the older row of each adjacent duplicate pair
- CleanupExecutor: marks rows deleted by system and removes their photos
- OrphanPhotoSweeper: removes photos no row references
- DuplicateSweep: one run of all of the above
- SweepScheduler: startup run plus fixed-period, non-overlapping runs
"""

from .scanner import DuplicateScanner, find_duplicates
from .executor import CleanupExecutor, PurgeOutcome
from .orphans import OrphanPhotoSweeper
from .sweep import DuplicateSweep
from .scheduler import SweepScheduler

__all__ = [
    'DuplicateScanner',
    'find_duplicates',
    'CleanupExecutor',
    'PurgeOutcome',
    'OrphanPhotoSweeper',
    'DuplicateSweep',
    'SweepScheduler',
]
