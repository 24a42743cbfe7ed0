"""Data models for the skill catalog.

Skills and their parameter schemas are authored as JSON with camelCase keys
and are immutable once loaded.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from filesmith.utils.file_utils import normalize_extension

_CATALOG_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
)


class ParamType(str, Enum):
    NUMBER = "number"
    STRING = "string"
    ENUM = "enum"
    BOOLEAN = "boolean"


class SkillSource(str, Enum):
    """Where a skill definition was loaded from."""

    CORE = "core"
    COMMUNITY = "community"


class ParamDef(BaseModel):
    """Schema for one skill parameter.

    A ``None`` default marks the parameter as required.
    """

    model_config = _CATALOG_CONFIG

    name: str
    type: ParamType
    label: str = ""
    default: Any = None
    presets: list[Any] = []
    options: list[str] = []
    min: float | None = None
    max: float | None = None
    unit: str = ""


class PipelineStep(BaseModel):
    model_config = _CATALOG_CONFIG

    skill_id: str
    params: dict[str, Any] = {}


class ExecutorSpec(BaseModel):
    """How a skill is run: natively by a driver, as a CLI command, or as a
    pipeline of other skills."""

    model_config = _CATALOG_CONFIG

    type: str = "native"  # native | cli | pipeline | meta
    handler: str = ""

    # cli
    command: str = ""
    args: list[str] = []
    output_extension: str = ""
    timeout_ms: int = 0

    # pipeline
    steps: list[PipelineStep] = []


class Skill(BaseModel):
    """Immutable catalog entry describing one named transformation."""

    model_config = _CATALOG_CONFIG

    id: str
    name: str
    version: str = ""
    author: str = ""
    aliases: list[str] = []
    category: str = ""
    description: str = ""
    input_types: list[str] = []
    output_type: str = ""
    params: list[ParamDef] = []
    driver: str = ""
    is_meta: bool = False
    danger_level: int = 0
    executor: ExecutorSpec = Field(default_factory=ExecutorSpec)
    permissions: list[str] = []

    # Runtime metadata, never serialised.
    source: SkillSource = Field(default=SkillSource.CORE, exclude=True)
    definition_path: str = Field(default="", exclude=True)

    def accepts(self, extension: str) -> bool:
        """Whether a file with *extension* may be fed to this skill."""
        if self.is_meta or "*" in self.input_types:
            return True
        return normalize_extension(extension) in self.input_types

    def output_extension(self, current_extension: str) -> str:
        """Extension of the artifact this skill produces from *current_extension*."""
        if self.output_type and self.output_type != "none":
            return self.output_type
        if self.executor.type == "cli" and self.executor.output_extension:
            return normalize_extension(self.executor.output_extension)
        return current_extension
