"""
Bairro - Service Errors

Failures of the storage layers. The cleanup sweep contains each of these at
the smallest unit it can (one file, one record); none of them is fatal to a
sweep except a failed initial fetch.
"""


class BairroError(Exception):
    """Base class for storage errors raised by bairro services."""


class RepositoryUnavailable(BairroError):
    """A query or update against the occurrences table failed."""


class PhotoNotFound(BairroError, FileNotFoundError):
    """The requested photo is not in the photo store."""

    def __init__(self, filename: str):
        super().__init__(f"Photo not found: {filename}")
        self.filename = filename


class PhotoRemovalFailed(BairroError):
    """A photo exists but could not be removed (permissions, I/O)."""

    def __init__(self, filename: str, reason: str):
        super().__init__(f"Could not delete photo {filename}: {reason}")
        self.filename = filename
        self.reason = reason


class InvalidPhotoName(BairroError, ValueError):
    """A photo name that would resolve outside the photo store."""
