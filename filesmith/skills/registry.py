"""Central registry that loads, stores, and searches skills."""

from __future__ import annotations

from collections.abc import Iterable

from filesmith.skills.loader import load_skills_from_directory
from filesmith.skills.models import Skill, SkillSource
from filesmith.skills.ranking import input_matches, match_tier
from filesmith.utils.exceptions import SkillNotFoundError
from filesmith.utils.logging import get_logger

logger = get_logger(__name__)


class SkillRegistry:
    """Catalog of every available skill, in catalog order.

    Typical lifecycle::

        registry = SkillRegistry()
        registry.discover(core_dir="./filesmith/skills/catalog",
                          community_dir="~/.filesmith/skills")
        skills = registry.search("resize", {"png"})
        skill = registry.get("resize")

    The registry is populated at startup and only read afterwards.
    """

    def __init__(self, skills: Iterable[Skill] = ()) -> None:
        self._skills: dict[str, Skill] = {}
        for skill in skills:
            self.register(skill)

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self, core_dir: str = "", community_dir: str = "") -> int:
        """Load core skills, then community skills from disk.

        Community definitions override core ones with the same id.
        Returns the number of definitions registered.
        """
        count = 0

        for directory, source in (
            (core_dir, SkillSource.CORE),
            (community_dir, SkillSource.COMMUNITY),
        ):
            if not directory:
                continue
            for skill in load_skills_from_directory(directory, source):
                self.register(skill)
                count += 1

        logger.info("skills_discovered", count=count, total=len(self._skills))
        return count

    # ------------------------------------------------------------------
    # Registration & lookup
    # ------------------------------------------------------------------

    def register(self, skill: Skill) -> None:
        """Add *skill*, keyed by id.

        Re-registering an id replaces the definition but keeps its catalog
        position.
        """
        if skill.id in self._skills:
            previous = self._skills[skill.id]
            logger.warning(
                "skill_overwritten",
                skill_id=skill.id,
                old_source=previous.source.value,
                new_source=skill.source.value,
            )
        self._skills[skill.id] = skill
        logger.debug("skill_registered", skill_id=skill.id)

    def get(self, skill_id: str) -> Skill:
        """Return the skill registered under *skill_id*.

        Raises :class:`SkillNotFoundError` if no such skill exists.
        """
        skill = self._skills.get(skill_id)
        if skill is None:
            raise SkillNotFoundError(skill_id)
        return skill

    def search(self, query: str = "", input_types: Iterable[str] = ()) -> list[Skill]:
        """Find skills applicable to *input_types*, best match first.

        A skill qualifies when it is a meta skill or accepts one of the
        caller's input types.  With an empty *query* every qualifying skill
        is returned in catalog order.  Otherwise results are ordered by
        match tier (exact id/name, alias, category, substring, typo) with
        ties in catalog order; non-matching skills are dropped.
        """
        wanted = {t for t in input_types if t}
        qualifying = [s for s in self._skills.values() if input_matches(s, wanted)]

        if not query.strip():
            return qualifying

        ranked: list[tuple[int, int, Skill]] = []
        for position, skill in enumerate(qualifying):
            tier = match_tier(skill, query)
            if tier is not None:
                ranked.append((tier, position, skill))

        ranked.sort(key=lambda item: (item[0], item[1]))
        return [skill for _, _, skill in ranked]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def list_all(self) -> list[Skill]:
        """Return every registered skill in catalog order."""
        return list(self._skills.values())

    def __len__(self) -> int:
        return len(self._skills)

    def __contains__(self, skill_id: str) -> bool:
        return skill_id in self._skills
