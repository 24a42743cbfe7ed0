"""Request/response schemas for the skills endpoints."""

from filesmith.engine.models import ContractModel
from filesmith.skills.models import Skill


class SkillsListResponse(ContractModel):
    """Matching skills, best first."""

    skills: list[Skill]
    total: int


class TrustRequest(ContractModel):
    trusted: bool


class TrustResponse(ContractModel):
    skill_id: str
    trusted: bool
