"""Working-file endpoints -- import, apply skills, remove history, export."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from filesmith.api.v1.schemas.common import ErrorResponse
from filesmith.api.v1.schemas.files import (
    AddFilesRequest,
    ExecuteSkillRequest,
    ExportRequest,
    FilesListResponse,
)
from filesmith.dependencies import get_engine
from filesmith.engine.models import AddFilesResult, ExportReport, SkillResult, WorkingFile
from filesmith.engine.service import SkillEngine
from filesmith.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "/files",
    response_model=FilesListResponse,
    summary="List working files",
)
async def list_files(engine: SkillEngine = Depends(get_engine)) -> FilesListResponse:
    files = engine.list_files()
    return FilesListResponse(files=files, total=len(files))


@router.post(
    "/files",
    response_model=AddFilesResult,
    summary="Import files",
    description="Copy each path into the session workspace.  Unreadable paths are reported per file.",
)
async def add_files(
    request: AddFilesRequest,
    engine: SkillEngine = Depends(get_engine),
) -> AddFilesResult:
    return await engine.add_files(request.paths)


@router.post(
    "/files/execute",
    response_model=SkillResult,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
    summary="Apply a skill",
    description=(
        "Apply one skill to every listed file.  Unknown skills and invalid "
        "params reject the whole call; per-file failures are listed in the result."
    ),
)
async def execute_skill(
    request: ExecuteSkillRequest,
    engine: SkillEngine = Depends(get_engine),
) -> SkillResult:
    logger.info("execute_requested", skill_id=request.skill_id, files=len(request.file_ids))
    return await engine.execute_skill(request.file_ids, request.skill_id, request.params)


@router.delete(
    "/files/{file_id}/skills/{index}",
    response_model=WorkingFile,
    responses={
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Remove one applied skill",
    description="Delete a history entry and rebuild the file by replaying the rest.",
)
async def remove_skill(
    file_id: str,
    index: int,
    engine: SkillEngine = Depends(get_engine),
) -> WorkingFile:
    return await engine.remove_skill(file_id, index)


@router.post(
    "/files/export",
    response_model=ExportReport,
    summary="Export files",
)
async def export_files(
    request: ExportRequest,
    engine: SkillEngine = Depends(get_engine),
) -> ExportReport:
    return await engine.export_files(request.file_ids)
