"""Session endpoints -- mode switching and clearing the working set."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from filesmith.api.v1.schemas.common import ErrorResponse
from filesmith.api.v1.schemas.session import ModeRequest
from filesmith.dependencies import get_engine
from filesmith.engine.models import SessionSnapshot
from filesmith.engine.service import SkillEngine

router = APIRouter()


@router.get(
    "/session",
    response_model=SessionSnapshot,
    summary="Current session",
)
async def get_session(engine: SkillEngine = Depends(get_engine)) -> SessionSnapshot:
    return engine.get_session()


@router.put(
    "/session/mode",
    response_model=SessionSnapshot,
    responses={422: {"model": ErrorResponse}},
    summary="Switch processing mode",
)
async def set_mode(
    request: ModeRequest,
    engine: SkillEngine = Depends(get_engine),
) -> SessionSnapshot:
    return engine.set_mode(request.mode)


@router.post(
    "/session/clear",
    response_model=SessionSnapshot,
    summary="Clear all files",
    description=(
        "Discard every working file and reset the session to its defaults.  "
        "File ids issued before the call are no longer valid."
    ),
)
async def clear_all(engine: SkillEngine = Depends(get_engine)) -> SessionSnapshot:
    return await engine.clear_all()
