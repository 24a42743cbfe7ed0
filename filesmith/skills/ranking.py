"""Query matching tiers used by :meth:`SkillRegistry.search`.

Lower tier wins; skills that match no tier are excluded from results.
"""

from __future__ import annotations

from enum import IntEnum

from filesmith.skills.models import Skill
from filesmith.utils.file_utils import normalize_extension

# Typo tolerance only kicks in for queries at least this long.
_FUZZY_MIN_QUERY = 3
_FUZZY_MAX_DISTANCE = 2


class MatchTier(IntEnum):
    EXACT = 0
    ALIAS = 1
    CATEGORY = 2
    SUBSTRING = 3
    FUZZY = 4


def match_tier(skill: Skill, query: str) -> MatchTier | None:
    """Return how well *skill* matches *query*, or ``None`` for no match."""
    q = query.strip().lower()
    name = skill.name.lower()

    if q in (skill.id.lower(), name):
        return MatchTier.EXACT

    for alias in skill.aliases:
        a = alias.lower()
        if a == q or a.startswith(q):
            return MatchTier.ALIAS

    if skill.category.lower() == q:
        return MatchTier.CATEGORY

    if q in name or q in skill.description.lower():
        return MatchTier.SUBSTRING

    # Word prefixes: "gray" matches "Make Grayscale".
    query_words = q.split()
    if any(nw.startswith(qw) for qw in query_words for nw in name.split()):
        return MatchTier.SUBSTRING

    if len(q) >= _FUZZY_MIN_QUERY and levenshtein(name, q) <= _FUZZY_MAX_DISTANCE:
        return MatchTier.FUZZY

    return None


def input_matches(skill: Skill, input_types: set[str]) -> bool:
    """An empty *input_types* set means the caller does not filter."""
    if skill.is_meta or not input_types or "*" in skill.input_types:
        return True
    wanted = {normalize_extension(t) for t in input_types}
    return not wanted.isdisjoint(skill.input_types)


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        curr = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            curr.append(min(curr[j - 1] + 1, prev[j] + 1, prev[j - 1] + cost))
        prev = curr
    return prev[-1]
