"""
Photo Store

Directory of uploaded occurrence photos, addressed by the filename the mobile
client generated at submission time. Filenames are unique per submission, so
two occurrences never share a file.
"""
import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterator, Tuple

from .errors import InvalidPhotoName, PhotoNotFound, PhotoRemovalFailed


logger = logging.getLogger(__name__)


class PhotoStore:
    """
    Filesystem-backed store of photo files.

    Usage:
        store = PhotoStore("/srv/bairro/uploadedImages")
        if store.exists("n1_2024-05-01_10:30_x.jpg"):
            data = store.read_bytes("n1_2024-05-01_10:30_x.jpg")
    """

    def __init__(self, root):
        self.root = Path(root)

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, filename: str) -> Path:
        # Only bare names are accepted, no directories or traversal
        if not filename or Path(filename).name != filename or filename in (".", ".."):
            raise InvalidPhotoName(f"Invalid photo name: {filename!r}")
        return self.root / filename

    def exists(self, filename: str) -> bool:
        if not filename:
            return False
        try:
            return self._path(filename).is_file()
        except InvalidPhotoName:
            return False

    def read_bytes(self, filename: str) -> bytes:
        """Read the whole file. Raises PhotoNotFound when absent."""
        try:
            return self._path(filename).read_bytes()
        except (FileNotFoundError, IsADirectoryError, InvalidPhotoName):
            raise PhotoNotFound(filename)

    def size(self, filename: str) -> int:
        try:
            return self._path(filename).stat().st_size
        except (FileNotFoundError, InvalidPhotoName):
            raise PhotoNotFound(filename)

    def same_content(self, filename_a: str, filename_b: str) -> bool:
        """
        Byte-for-byte comparison of two stored photos.

        Raises PhotoNotFound if either file is missing.
        """
        if self.size(filename_a) != self.size(filename_b):
            return False
        return self.read_bytes(filename_a) == self.read_bytes(filename_b)

    def delete(self, filename: str) -> bool:
        """
        Remove a photo.

        Returns:
            True if the file was removed, False if it was already absent

        Raises:
            PhotoRemovalFailed on permission or I/O errors
        """
        path = self._path(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PhotoRemovalFailed(filename, str(e))
        logger.debug(f"File deleted successfully: {path}")
        return True

    def save(self, filename: str, source: BinaryIO) -> int:
        """Store an uploaded file under its name, replacing any previous one."""
        self.ensure_root()
        path = self._path(filename)
        with open(path, "wb") as buffer:
            shutil.copyfileobj(source, buffer)
        return path.stat().st_size

    def list_files(self) -> Iterator[Tuple[str, datetime]]:
        """Yield (filename, modified_at) for every file in the store."""
        if not self.root.is_dir():
            return
        with os.scandir(self.root) as entries:
            for entry in entries:
                if not entry.is_file():
                    continue
                modified = datetime.fromtimestamp(entry.stat().st_mtime, tz=timezone.utc)
                yield entry.name, modified

