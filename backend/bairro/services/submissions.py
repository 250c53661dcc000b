"""
Submission Service

Commands the mobile app posts to /serverapp, each translated into one
repository write:

- submitNewEntryToDB: new occurrence, server assigns the row id and keys
- setSolvedOccurrenceStatus: the reporting user marks it (un)solved
- setEntryInDbAsDeletedByAdmin / setEntryInDbAsDeletedByUser: soft delete

Updates always match on both the device uuid and the row id.
"""
import logging
import secrets
from typing import Any, Dict
from uuid import uuid4

from .repository import OccurrenceRepository, SUBMITTABLE_FIELDS


logger = logging.getLogger(__name__)

CONFIRMATION_KEY_BYTES = 4  # 8 hex characters


class UnknownCommand(ValueError):
    """serverCommand not handled by the service."""

    def __init__(self, command: str):
        super().__init__(f"POST dbCommand {command} does not exist")
        self.command = command


def generate_confirmation_key() -> str:
    return secrets.token_hex(CONFIRMATION_KEY_BYTES)


class SubmissionService:
    """
    Usage:
        service = SubmissionService(repository)
        returned = service.execute("submitNewEntryToDB", database_obj)
    """

    def __init__(self, repository: OccurrenceRepository):
        self.repository = repository
        self._handlers = {
            "submitNewEntryToDB": self.submit_new_entry,
            "setSolvedOccurrenceStatus": self.set_solved_status,
            "setEntryInDbAsDeletedByAdmin": self.set_deleted_by_admin,
            "setEntryInDbAsDeletedByUser": self.set_deleted_by_user,
        }

    def execute(self, command: str, database_obj: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run one command.

        Raises:
            UnknownCommand: command is not one of the four above
            RepositoryUnavailable: the write failed
        """
        handler = self._handlers.get(command)
        if handler is None:
            raise UnknownCommand(command)
        logger.debug(f"serverCommand is {command}")
        return handler(database_obj)

    def submit_new_entry(self, database_obj: Dict[str, Any]) -> Dict[str, Any]:
        values = {k: v for k, v in database_obj.items() if k in SUBMITTABLE_FIELDS}
        for slot in ("foto1", "foto2", "foto3", "foto4"):
            values[slot] = values.get(slot) or ""
        if "PROD" in values:
            values["PROD"] = bool(values["PROD"])

        values["table_row_uuid"] = str(uuid4())
        values["chave_confirmacao_ocorrencia_resolvida_por_op"] = generate_confirmation_key()
        # Authority keys only when the authority will actually be emailed
        values["chave_confirmacao_ocorrencia_resolvida_por_municipio"] = (
            generate_confirmation_key() if values.get("email_concelho") else None
        )
        values["chave_confirmacao_ocorrencia_resolvida_por_freguesia"] = (
            generate_confirmation_key() if values.get("email_freguesia") else None
        )

        self.repository.insert(values)
        logger.info(f"Occurrence {values['table_row_uuid']} submitted by device {values.get('uuid')}")

        return {
            key: values[key]
            for key in (
                "table_row_uuid",
                "chave_confirmacao_ocorrencia_resolvida_por_op",
                "chave_confirmacao_ocorrencia_resolvida_por_municipio",
                "chave_confirmacao_ocorrencia_resolvida_por_freguesia",
            )
        }

    def set_solved_status(self, database_obj: Dict[str, Any]) -> Dict[str, Any]:
        solved = bool(database_obj.get("ocorrencia_resolvida"))
        updated = self.repository.set_solved_status(
            database_obj.get("uuid"), database_obj.get("table_row_uuid"), solved,
        )
        logger.info(f"Occurrence {database_obj.get('table_row_uuid')} solved={solved} ({updated} row)")
        return {}

    def set_deleted_by_admin(self, database_obj: Dict[str, Any]) -> Dict[str, Any]:
        self.repository.mark_deleted_by_admin(database_obj.get("uuid"), database_obj.get("table_row_uuid"))
        return {}

    def set_deleted_by_user(self, database_obj: Dict[str, Any]) -> Dict[str, Any]:
        self.repository.mark_deleted_by_user(database_obj.get("uuid"), database_obj.get("table_row_uuid"))
        return {}
