"""
Bairro - Occurrences API Router

Endpoints the mobile app talks to. Paths and payload keys are the ones already
shipped in the app, so they keep their original names; a reverse proxy may
add any prefix in front of them.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..dependencies import get_repository
from ..services.errors import RepositoryUnavailable
from ..services.repository import OccurrenceRepository
from ..services.submissions import SubmissionService, UnknownCommand


logger = logging.getLogger(__name__)

router = APIRouter(tags=["occurrences"])


# =============================================================================
# PYDANTIC MODELS
# =============================================================================

class ServerCommandRequest(BaseModel):
    """Command posted by the app."""
    serverCommand: Optional[str] = None
    dbCommand: Optional[str] = None  # older app versions
    databaseObj: Optional[Dict[str, Any]] = None


def _error(message: str) -> JSONResponse:
    # The app reads {"error": ...} with status 501 for every failure
    return JSONResponse(status_code=501, content={"error": message})


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/serverapp")
@router.post("/{prefix:path}/serverapp", include_in_schema=False)
def run_server_command(
    request: ServerCommandRequest,
    repository: OccurrenceRepository = Depends(get_repository),
):
    """
    Upload a new occurrence or update the state of an existing one.
    """
    command = request.serverCommand or request.dbCommand
    if not command or request.databaseObj is None:
        logger.debug("Bad request")
        return _error("property serverCommand or databaseObj of request does not exist")

    service = SubmissionService(repository)
    try:
        returned_data = service.execute(command, request.databaseObj)
    except UnknownCommand as e:
        logger.error(f"Bad request on dbCommand: {command}")
        return _error(str(e))
    except RepositoryUnavailable as e:
        logger.error(f"Error inserting user data into database: {e}")
        return _error("Error inserting user data into database")

    return returned_data


@router.get("/serverapp_get_historic", response_model=List[Dict[str, Any]])
@router.get("/{prefix:path}/serverapp_get_historic", include_in_schema=False)
def get_historic(
    uuid: Optional[str] = None,
    occurrence_uuid: Optional[str] = None,
    repository: OccurrenceRepository = Depends(get_repository),
):
    """
    Occurrences for the app.

    - uuid: every live occurrence of that device (the user's history)
    - occurrence_uuid: one occurrence by its row id
    - neither: every live, unresolved production occurrence (the public map)
    """
    try:
        if uuid:
            results = repository.list_live_for_device(uuid)
        elif occurrence_uuid:
            results = repository.get_public(occurrence_uuid)
        else:
            results = repository.list_open_production()
    except RepositoryUnavailable as e:
        logger.error(f"Error fetching info from database: {e}")
        return _error("Error fetching info from database")

    logger.debug(f"Entries from db query: {len(results)}")
    return results
