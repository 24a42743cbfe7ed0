"""Boundary data model shared by the engine and every transport.

All models serialise with camelCase keys (``currentExtension``,
``appliedSkills`` ...) and carry plain data only, so the same definitions
describe the HTTP contract.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from filesmith.utils.exceptions import FilesmithError


class ContractModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Mode(str, Enum):
    """Processing mode surfaced to the UI."""

    BATCH = "batch"
    PER_FILE = "per_file"


class AppliedSkill(ContractModel):
    """One history entry: the skill and the exact validated params used."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    skill_id: str
    params: dict[str, Any] = {}
    applied_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class WorkingFile(ContractModel):
    """An imported file, its current derived artifact, and its history.

    ``working_path`` always equals the result of replaying
    ``applied_skills`` in order from the original import.
    """

    id: str
    name: str
    extension: str
    current_extension: str
    original_path: str
    working_path: str
    size: int = 0
    preview_data_url: str = ""
    applied_skills: list[AppliedSkill] = []


class SessionSnapshot(ContractModel):
    mode: Mode = Mode.BATCH
    output_folder: str = ""
    naming_pattern: str = "{name}_{skill}.{ext}"


class FileFailure(ContractModel):
    """Why one file in a batch was not processed.

    For imports, ``file_id`` carries the source path instead.
    """

    file_id: str
    error: str
    detail: str

    @classmethod
    def from_error(cls, file_id: str, exc: FilesmithError) -> "FileFailure":
        return cls(file_id=file_id, error=type(exc).__name__, detail=str(exc))


class SkillResult(ContractModel):
    """Outcome of one ``ExecuteSkill`` call.

    ``updated_files`` holds only the files that changed; failures are listed
    individually and summarised in ``message``.
    """

    updated_files: list[WorkingFile] = []
    session: SessionSnapshot
    message: str | None = None
    failures: list[FileFailure] = []


class ExportResult(ContractModel):
    file_id: str
    output_path: str


class ExportReport(ContractModel):
    results: list[ExportResult] = []
    failures: list[FileFailure] = []
    message: str = ""


class AddFilesResult(ContractModel):
    files: list[WorkingFile] = []
    failures: list[FileFailure] = []
    message: str = ""


def summarize(action: str, succeeded: int, failures: list[FileFailure]) -> str:
    """Human readable one-liner for a batch outcome."""
    total = succeeded + len(failures)
    if not failures:
        return f"{action} {succeeded} file{'s' if succeeded != 1 else ''}"
    details = "; ".join(f"{f.file_id}: {f.detail}" for f in failures)
    return f"{action} {succeeded} of {total} files; {len(failures)} failed: {details}"
