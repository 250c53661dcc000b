"""
Authority Resolution

Parish and municipality authorities receive an email with a link carrying the
occurrence row id and their confirmation key. Following the link marks the
occurrence as resolved by that authority.
"""
import logging
import secrets
from enum import Enum

from .repository import OccurrenceRepository


logger = logging.getLogger(__name__)


class Authority(str, Enum):
    """Authorities, keyed by the path segment used in the emailed link."""
    PARISH = "freguesia"
    MUNICIPALITY = "municipio"

    @property
    def repository_name(self) -> str:
        return "parish" if self is Authority.PARISH else "municipality"


class ResolutionError(Exception):
    """Base class for rejected resolution links."""


class InvalidEntry(ResolutionError):
    """No occurrence with that row id."""


class WrongKey(ResolutionError):
    """Key does not match the authority's confirmation key."""


def resolve_by_authority(
    repository: OccurrenceRepository,
    authority: Authority,
    row_id: str,
    key: str,
) -> None:
    """
    Mark an occurrence resolved by an authority after checking its key.

    Raises:
        InvalidEntry: unknown row id
        WrongKey: missing or different key (an authority without email has no key)
        RepositoryUnavailable: the lookup or the update failed
    """
    keys = repository.get_confirmation_keys(row_id)
    if keys is None:
        raise InvalidEntry(row_id)

    expected = keys[authority.repository_name]
    if not expected or not secrets.compare_digest(expected.encode(), key.encode()):
        raise WrongKey(row_id)

    repository.mark_resolved_by_authority(row_id, authority.repository_name)
    logger.info(f"Entry {row_id} marked as solved by {authority.repository_name}")
