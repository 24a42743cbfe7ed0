"""Skill catalog loader -- discovers and parses JSON skill definitions."""

from pathlib import Path

from pydantic import ValidationError

from filesmith.skills.models import Skill, SkillSource
from filesmith.skills.permissions import normalize_permissions
from filesmith.utils.exceptions import SkillDefinitionError
from filesmith.utils.file_utils import normalize_extension
from filesmith.utils.logging import get_logger

logger = get_logger(__name__)

# Reserved for pack metadata, never skills.
_RESERVED_NAMES = {"manifest.json", "pack.json"}


def is_skill_definition(path: Path) -> bool:
    name = path.name.lower()
    if not name.endswith(".json"):
        return False
    if name.startswith(".") or name.startswith("_"):
        return False
    return name not in _RESERVED_NAMES


def load_skills_from_directory(
    directory: str | Path,
    source: SkillSource = SkillSource.CORE,
) -> list[Skill]:
    """Recursively scan *directory* for skill definitions.

    Parameters
    ----------
    directory:
        Filesystem path to scan.  Non-existent directories yield an empty
        list.
    source:
        Recorded on every loaded skill; community skills are subject to
        trust checks.

    Returns
    -------
    list[Skill]
        Valid skills in sorted path order.  Invalid files are logged and
        skipped.
    """
    directory = Path(directory)

    if not directory.exists():
        logger.warning("skills_directory_missing", path=str(directory))
        return []

    if not directory.is_dir():
        logger.warning("skills_path_not_directory", path=str(directory))
        return []

    skills: list[Skill] = []

    for filepath in sorted(directory.rglob("*.json")):
        if not is_skill_definition(filepath):
            continue
        try:
            skills.append(load_skill_from_file(filepath, source))
        except SkillDefinitionError as exc:
            logger.error("skill_file_load_error", path=str(filepath), error=str(exc))

    return skills


def load_skill_from_file(
    filepath: str | Path,
    source: SkillSource = SkillSource.CORE,
) -> Skill:
    """Parse and normalise a single skill definition.

    Raises :class:`SkillDefinitionError` when the file cannot be read or
    does not describe a valid skill.
    """
    filepath = Path(filepath)

    try:
        raw = filepath.read_text(encoding="utf-8")
    except OSError as exc:
        raise SkillDefinitionError(str(filepath), str(exc)) from exc

    try:
        skill = Skill.model_validate_json(raw)
    except ValidationError as exc:
        raise SkillDefinitionError(str(filepath), str(exc)) from exc

    skill = normalize_skill(skill, str(filepath))
    skill = skill.model_copy(update={"source": source, "definition_path": str(filepath)})
    logger.debug("skill_loaded", skill_id=skill.id, file=str(filepath))
    return skill


def normalize_skill(skill: Skill, path: str = "<memory>") -> Skill:
    """Fill in inferred fields and reject incomplete definitions."""
    if not skill.id.strip():
        raise SkillDefinitionError(path, "missing id")
    if not skill.name.strip():
        raise SkillDefinitionError(path, "missing name")
    if not skill.version.strip():
        raise SkillDefinitionError(path, "missing version")

    driver = skill.driver.strip()
    if not driver:
        executor_type = skill.executor.type.strip().lower()
        driver = executor_type if executor_type in ("cli", "pipeline") else "meta"

    output_type = skill.output_type
    if output_type and output_type != "none":
        output_type = normalize_extension(output_type)

    return skill.model_copy(
        update={
            "driver": driver,
            "input_types": [
                t if t == "*" else normalize_extension(t) for t in skill.input_types
            ],
            "output_type": output_type,
            "permissions": normalize_permissions(skill.permissions),
        }
    )
