"""
Duplicate Sweep - Dry-Run Script

Runs the duplicate scanner against the configured database and photo
directory and prints what a sweep would mark as deleted. Nothing is written
and no file is removed.

Run with: python dry_run_sweep.py
"""
import os
import sys
from collections import Counter

# Add bairro to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bairro import config
from bairro.database import SessionLocal
from bairro.services.cleanup import DuplicateScanner
from bairro.services.errors import RepositoryUnavailable
from bairro.services.photo_store import PhotoStore
from bairro.services.repository import OccurrenceRepository


def print_header(title: str):
    """Print a formatted section header."""
    print(f"\n{'='*70}")
    print(title)
    print('='*70)


def print_info(msg: str):
    """Print info message."""
    print(f"  [INFO] {msg}")


def print_fail(msg: str):
    """Print failure message."""
    print(f"  [FAIL] {msg}")


def main() -> bool:
    print_header("DUPLICATE SWEEP - DRY RUN")
    print_info(f"Photo directory: {config.PHOTO_DIRECTORY}")
    print_info(f"Including already deleted entries: {config.SWEEP_INCLUDE_DELETED}")

    repository = OccurrenceRepository(SessionLocal)
    scanner = DuplicateScanner(
        repository,
        PhotoStore(config.PHOTO_DIRECTORY),
        include_deleted=config.SWEEP_INCLUDE_DELETED,
    )

    try:
        duplicates = scanner.scan()
    except RepositoryUnavailable as e:
        print_fail(str(e))
        return False

    print_header(f"{len(duplicates)} ENTRIES WOULD BE MARKED AS DELETED BY SYSTEM")
    for record in duplicates:
        print(
            f"  {record.row_id}  device={record.device_id}  "
            f"{record.submitted_date} {record.submitted_time}  "
            f"parish={record.parish}  photos={len(record.photo_files())}"
        )

    per_device = Counter(record.device_id for record in duplicates)
    if per_device:
        print_header("PER DEVICE")
        for device_id, count in per_device.most_common():
            print(f"  {device_id}: {count}")

    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
