"""Replay engine -- rebuilds a working file from its history.

Drivers are not invertible, so removing a history entry means re-running
every remaining entry, in order, from the immutable base copy of the
import.  Recorded params were validated when first applied and are used
as-is.

Replay is all-or-nothing: intermediates live beside the final revision and
are removed on the way, and on any failure the file keeps its pre-removal
state while a :class:`ReplayError` names the step that broke.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from filesmith.engine.models import AppliedSkill, WorkingFile
from filesmith.engine.preview import build_preview
from filesmith.engine.runner import Artifact, StepRunner
from filesmith.engine.store import WorkingFileStore
from filesmith.skills.registry import SkillRegistry
from filesmith.utils.exceptions import (
    FilesmithError,
    IndexOutOfRangeError,
    ReplayError,
)
from filesmith.utils.file_utils import remove_quietly
from filesmith.utils.logging import get_logger

logger = get_logger("engine.replay")


class ReplayEngine:
    def __init__(
        self,
        registry: SkillRegistry,
        store: WorkingFileStore,
        runner: StepRunner,
        preview_max_width: int = 520,
    ) -> None:
        self.registry = registry
        self.store = store
        self.runner = runner
        self.preview_max_width = preview_max_width

    async def remove_application(self, file_id: str, index: int) -> WorkingFile:
        """Drop history entry *index* and rebuild the file from the rest.

        Raises :class:`WorkingFileNotFoundError`,
        :class:`IndexOutOfRangeError` or :class:`ReplayError`; in every
        error case the stored file is unchanged.
        """
        async with self.store.lock(file_id):
            current = self.store.get(file_id)
            history = current.applied_skills
            if not 0 <= index < len(history):
                raise IndexOutOfRangeError(file_id, index, len(history))

            remaining = history[:index] + history[index + 1:]
            logger.info(
                "replay_start",
                file_id=file_id,
                removed_index=index,
                removed_skill=history[index].skill_id,
                remaining=len(remaining),
            )

            artifact = await self.replay(file_id, remaining)
            base_path = self.store.base_path(file_id)
            try:
                preview = await build_preview(artifact.path, self.preview_max_width)
                updated = current.model_copy(
                    update={
                        "working_path": str(artifact.path),
                        "current_extension": artifact.extension,
                        "size": artifact.size,
                        "preview_data_url": preview,
                        "applied_skills": remaining,
                    }
                )
                self.store.commit(updated)
            except BaseException:
                self._drop_intermediate(artifact.path, base_path)
                raise
            self.runner.discard(current.working_path, base_path)

        logger.info("replay_complete", file_id=file_id, history=len(remaining))
        return updated

    async def replay(self, file_id: str, history: list[AppliedSkill]) -> Artifact:
        """Run *history* from the base copy and return the final artifact.

        With an empty history the base copy itself is the result.  The
        returned artifact is owned by the caller.
        """
        data = self.store.get(file_id)
        base_path = self.store.base_path(file_id)
        if not history:
            return Artifact(
                path=base_path,
                extension=data.extension,
                size=base_path.stat().st_size,
            )

        current_path: Path = base_path
        current_ext = data.extension
        for position, entry in enumerate(history):
            try:
                skill = self.registry.get(entry.skill_id)
                driver = self.runner.driver_for(skill)
                artifact = await self.runner.run(
                    file_id,
                    skill,
                    driver,
                    current_path,
                    current_ext,
                    dict(entry.params),
                )
            except (FilesmithError, OSError) as exc:
                self._drop_intermediate(current_path, base_path)
                logger.warning(
                    "replay_failed",
                    file_id=file_id,
                    failed_index=position,
                    skill_id=entry.skill_id,
                    error=str(exc),
                )
                raise ReplayError(file_id, position, str(exc)) from exc
            except asyncio.CancelledError:
                self._drop_intermediate(current_path, base_path)
                raise

            self._drop_intermediate(current_path, base_path)
            current_path = artifact.path
            current_ext = artifact.extension

        return artifact

    async def verify(self, file_id: str) -> bool:
        """Whether replaying the stored history reproduces ``workingPath`` exactly."""
        async with self.store.lock(file_id):
            data = self.store.get(file_id)
            artifact = await self.replay(file_id, data.applied_skills)
            try:
                rebuilt = await asyncio.to_thread(artifact.path.read_bytes)
                stored = await asyncio.to_thread(Path(data.working_path).read_bytes)
            finally:
                self._drop_intermediate(artifact.path, self.store.base_path(file_id))

        same = rebuilt == stored
        logger.info("replay_verified", file_id=file_id, matches=same)
        return same

    @staticmethod
    def _drop_intermediate(path: Path, base_path: Path) -> None:
        if path != base_path:
            remove_quietly(path)
