"""Skills subsystem -- catalog models, loader, registry, and parameter validation."""

from filesmith.skills.models import (
    ExecutorSpec,
    ParamDef,
    ParamType,
    PipelineStep,
    Skill,
    SkillSource,
)
from filesmith.skills.registry import SkillRegistry
from filesmith.skills.validator import validate_params

__all__ = [
    "ExecutorSpec",
    "ParamDef",
    "ParamType",
    "PipelineStep",
    "Skill",
    "SkillRegistry",
    "SkillSource",
    "validate_params",
]
