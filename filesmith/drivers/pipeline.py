"""Composite skills: a fixed chain of other skills run as one step."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from filesmith.drivers.base import BaseDriver, DriverRegistry
from filesmith.skills.models import Skill
from filesmith.skills.registry import SkillRegistry
from filesmith.skills.validator import validate_params
from filesmith.utils.exceptions import DriverExecutionError, FilesmithError
from filesmith.utils.file_utils import extension_of, remove_quietly, temp_sibling

MAX_PIPELINE_DEPTH = 6


class PipelineDriver(BaseDriver):
    """Runs ``skill.executor.steps`` in order.

    Each step receives the call params overlaid with the step's own params,
    restricted to the step skill's schema and validated against it.  Nested
    pipelines are allowed up to :data:`MAX_PIPELINE_DEPTH`.
    """

    driver_id = "pipeline"

    def __init__(self, registry: SkillRegistry, drivers: DriverRegistry) -> None:
        self.registry = registry
        self.drivers = drivers

    async def transform(
        self,
        input_path: Path,
        output_path: Path,
        skill: Skill,
        params: dict[str, Any],
    ) -> None:
        await self._run(input_path, output_path, skill, params, depth=0)

    def output_extension(self, skill: Skill, current_extension: str) -> str:
        return self._extension_after(skill, current_extension, depth=0)

    def _extension_after(self, skill: Skill, ext: str, depth: int) -> str:
        if skill.output_type and skill.output_type != "none":
            return skill.output_type
        if depth > MAX_PIPELINE_DEPTH:
            return ext
        for step in skill.executor.steps:
            if step.skill_id not in self.registry:
                break
            ext = self._step_extension(self.registry.get(step.skill_id), ext, depth + 1)
        return ext

    def _step_extension(self, step_skill: Skill, ext: str, depth: int) -> str:
        if step_skill.driver == self.driver_id:
            return self._extension_after(step_skill, ext, depth)
        if step_skill.driver in self.drivers:
            return self.drivers.get(step_skill.driver).output_extension(step_skill, ext)
        return step_skill.output_extension(ext)

    async def _run(
        self,
        input_path: Path,
        output_path: Path,
        skill: Skill,
        params: dict[str, Any],
        depth: int,
    ) -> None:
        if depth > MAX_PIPELINE_DEPTH:
            raise DriverExecutionError(self.driver_id, "pipeline depth exceeded")
        steps = skill.executor.steps
        if not steps:
            raise DriverExecutionError(self.driver_id, f"pipeline '{skill.id}' has no steps")

        current = input_path
        scratch: list[Path] = []
        try:
            for position, step in enumerate(steps):
                step_skill, step_params = self._resolve_step(step.skill_id, {**params, **step.params})
                last = position == len(steps) - 1

                if last:
                    target = output_path
                else:
                    ext = self._step_extension(step_skill, extension_of(current), depth + 1)
                    target = temp_sibling(output_path.with_suffix(f".{ext}" if ext else ""))
                    scratch.append(target)

                if step_skill.driver == self.driver_id:
                    await self._run(current, target, step_skill, step_params, depth + 1)
                else:
                    driver = self.drivers.get(step_skill.driver)
                    await driver.transform(current, target, step_skill, step_params)
                current = target
        finally:
            for path in scratch:
                remove_quietly(path)

    def _resolve_step(self, skill_id: str, merged: dict[str, Any]) -> tuple[Skill, dict[str, Any]]:
        try:
            step_skill = self.registry.get(skill_id)
            if step_skill.is_meta:
                raise DriverExecutionError(self.driver_id, f"pipeline step cannot be meta: {skill_id}")
            names = {p.name for p in step_skill.params}
            step_params = validate_params(
                step_skill.params,
                {k: v for k, v in merged.items() if k in names},
            )
        except DriverExecutionError:
            raise
        except FilesmithError as exc:
            raise DriverExecutionError(self.driver_id, f"step '{skill_id}': {exc}") from exc
        return step_skill, step_params
