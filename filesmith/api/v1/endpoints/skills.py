"""Skill catalog endpoints -- search, lookup and trust decisions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from filesmith.api.v1.schemas.common import ErrorResponse
from filesmith.api.v1.schemas.skill import SkillsListResponse, TrustRequest, TrustResponse
from filesmith.dependencies import get_engine
from filesmith.engine.service import SkillEngine
from filesmith.skills.models import Skill

router = APIRouter()


def _split_types(raw: list[str]) -> list[str]:
    # Accept both ?inputTypes=png&inputTypes=jpg and ?inputTypes=png,jpg
    return [t.strip() for item in raw for t in item.split(",") if t.strip()]


@router.get(
    "/skills",
    response_model=SkillsListResponse,
    summary="Search skills",
    description=(
        "Return skills applicable to the given input types, ranked against "
        "the query.  An empty query lists every applicable skill."
    ),
)
async def get_skills(
    query: str = "",
    input_types: list[str] = Query(default=[], alias="inputTypes"),
    engine: SkillEngine = Depends(get_engine),
) -> SkillsListResponse:
    skills = engine.get_skills(query, _split_types(input_types))
    return SkillsListResponse(skills=skills, total=len(skills))


@router.get(
    "/skills/{skill_id}",
    response_model=Skill,
    responses={404: {"model": ErrorResponse}},
    summary="Get one skill",
)
async def get_skill(skill_id: str, engine: SkillEngine = Depends(get_engine)) -> Skill:
    return engine.get_skill(skill_id)


@router.get(
    "/skills/{skill_id}/trust",
    response_model=TrustResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Read the trust decision for a skill",
)
async def get_skill_trust(
    skill_id: str,
    engine: SkillEngine = Depends(get_engine),
) -> TrustResponse:
    return TrustResponse(skill_id=skill_id, trusted=engine.get_skill_trust(skill_id))


@router.put(
    "/skills/{skill_id}/trust",
    response_model=Skill,
    responses={404: {"model": ErrorResponse}},
    summary="Trust or distrust a community skill",
)
async def set_skill_trust(
    skill_id: str,
    request: TrustRequest,
    engine: SkillEngine = Depends(get_engine),
) -> Skill:
    return engine.set_skill_trust(skill_id, request.trusted)
