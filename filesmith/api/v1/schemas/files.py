"""Request/response schemas for working-file endpoints."""

from typing import Any

from pydantic import Field

from filesmith.engine.models import ContractModel, WorkingFile


class FilesListResponse(ContractModel):
    files: list[WorkingFile]
    total: int


class AddFilesRequest(ContractModel):
    """Absolute or working-directory relative paths to import."""

    paths: list[str] = Field(min_length=1)


class ExecuteSkillRequest(ContractModel):
    file_ids: list[str] = []
    skill_id: str
    params: dict[str, Any] = {}


class ExportRequest(ContractModel):
    """An empty ``fileIds`` list exports every file in the session."""

    file_ids: list[str] = []
