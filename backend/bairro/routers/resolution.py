"""
Bairro - Resolution Links Router

Link emailed to parish and municipality authorities to mark an occurrence as
resolved. Replies are short pages in Portuguese, read by the authority in a
browser.
"""
import logging
from html import escape

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, PlainTextResponse

from ..config import PUBLIC_OCCURRENCE_URL
from ..dependencies import get_repository
from ..services.errors import RepositoryUnavailable
from ..services.repository import OccurrenceRepository
from ..services.resolution import Authority, InvalidEntry, ResolutionError, resolve_by_authority


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/resolvido", tags=["resolution"])

CONFIRMATION_PAGE = """<!DOCTYPE html>
<html lang="pt">
<head><meta charset="utf-8"><title>Ocorrência resolvida</title></head>
<body>
<a href="{url}?uuid={row_id}">Ocorrência</a> marcada como resolvida.<br>
Muito obrigados pela participação!
</body>
</html>
"""


def _failure(message: str) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=501)


@router.get("/{authority}/{table_row_uuid}/{key}")
def resolve_occurrence(
    authority: str,
    table_row_uuid: str,
    key: str,
    repository: OccurrenceRepository = Depends(get_repository),
):
    """Mark an occurrence resolved by the parish or the municipality."""
    try:
        who = Authority(authority)
    except ValueError:
        logger.debug(f"Error: wrong authority {authority!r} for entry {table_row_uuid}")
        return _failure("Erro no pedido")

    try:
        resolve_by_authority(repository, who, table_row_uuid, key)
    except RepositoryUnavailable:
        return _failure("Ocorreu um erro na ligação à base de dados")
    except InvalidEntry:
        return _failure("Ocorreu um erro: identificador da ocorrência inválido")
    except ResolutionError:
        return _failure("Ocorreu um erro")

    return HTMLResponse(CONFIRMATION_PAGE.format(
        url=escape(PUBLIC_OCCURRENCE_URL),
        row_id=escape(table_row_uuid),
    ))


@router.get("", include_in_schema=False)
@router.get("/{partial:path}", include_in_schema=False)
def incomplete_resolution_link():
    """Links missing the authority, the occurrence or the key."""
    return _failure("Erro no pedido")
