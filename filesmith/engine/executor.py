"""Skill executor -- applies one skill to a batch of working files.

For every call the :class:`SkillExecutor`:

1. Resolves the skill (whole call fails with ``SkillNotFoundError``).
2. Validates the params once for the batch (``ParamValidationError``).
3. Runs each file independently and concurrently, bounded by
   ``max_parallel``: input-type check, driver dispatch, history append,
   store commit.
4. Returns a :class:`SkillResult` with only the files that changed plus
   every per-file failure.

One file failing never rolls back or blocks the others.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from filesmith.drivers.base import BaseDriver
from filesmith.engine.models import (
    AppliedSkill,
    FileFailure,
    SkillResult,
    WorkingFile,
    summarize,
)
from filesmith.engine.preview import build_preview
from filesmith.engine.runner import StepRunner
from filesmith.engine.session import SessionManager
from filesmith.engine.store import WorkingFileStore
from filesmith.skills.models import Skill
from filesmith.skills.registry import SkillRegistry
from filesmith.skills.validator import validate_params
from filesmith.utils.exceptions import (
    DriverExecutionError,
    FilesmithError,
    UnsupportedInputTypeError,
    WorkingFileNotFoundError,
)
from filesmith.utils.file_utils import remove_quietly
from filesmith.utils.logging import get_logger


class SkillExecutor:
    """Apply skills to working files.

    Parameters
    ----------
    registry:
        Source of skill definitions.
    store:
        Owner of the working files; updated only for files that succeed.
    runner:
        Dispatches to transform drivers with temp-then-swap writes.
    session:
        Read for the snapshot echoed back in every result; never mutated.
    max_parallel:
        Upper bound on concurrently running driver invocations.
    """

    def __init__(
        self,
        registry: SkillRegistry,
        store: WorkingFileStore,
        runner: StepRunner,
        session: SessionManager,
        max_parallel: int = 4,
        preview_max_width: int = 520,
    ) -> None:
        self.registry = registry
        self.store = store
        self.runner = runner
        self.session = session
        self.preview_max_width = preview_max_width
        self._slots = asyncio.Semaphore(max(1, max_parallel))
        self.logger = get_logger("engine.executor")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def execute(
        self,
        file_ids: Iterable[str],
        skill_id: str,
        params: dict[str, Any] | None = None,
    ) -> SkillResult:
        skill = self.registry.get(skill_id)
        validated = validate_params(skill.params, params)
        driver = self.runner.driver_for(skill)

        ids = list(dict.fromkeys(file_ids))
        self.logger.info("execute_start", skill_id=skill.id, files=len(ids))

        outcomes = await asyncio.gather(
            *(self._apply_to_file(fid, skill, driver, validated) for fid in ids)
        )

        updated = [o for o in outcomes if isinstance(o, WorkingFile)]
        failures = [o for o in outcomes if isinstance(o, FileFailure)]

        self.logger.info(
            "execute_complete",
            skill_id=skill.id,
            succeeded=len(updated),
            failed=len(failures),
        )
        return SkillResult(
            updated_files=updated,
            session=self.session.snapshot(),
            message=summarize(f"Applied {skill.name} to", len(updated), failures),
            failures=failures,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _apply_to_file(
        self,
        file_id: str,
        skill: Skill,
        driver: BaseDriver,
        params: dict[str, Any],
    ) -> WorkingFile | FileFailure:
        try:
            lock = self.store.lock(file_id)
        except WorkingFileNotFoundError as exc:
            return self._fail(file_id, skill, exc)

        async with lock:
            try:
                return await self._apply_locked(file_id, skill, driver, params)
            except FilesmithError as exc:
                return self._fail(file_id, skill, exc)
            except Exception as exc:
                self.logger.error(
                    "apply_unexpected_error",
                    file_id=file_id,
                    skill_id=skill.id,
                    error=str(exc),
                    exc_info=True,
                )
                return self._fail(file_id, skill, DriverExecutionError(skill.driver, str(exc)))

    async def _apply_locked(
        self,
        file_id: str,
        skill: Skill,
        driver: BaseDriver,
        params: dict[str, Any],
    ) -> WorkingFile:
        current = self.store.get(file_id)
        if not skill.accepts(current.current_extension):
            raise UnsupportedInputTypeError(skill.id, current.current_extension)

        async with self._slots:
            artifact = await self.runner.run(
                file_id,
                skill,
                driver,
                current.working_path,
                current.current_extension,
                params,
            )
            try:
                preview = await build_preview(artifact.path, self.preview_max_width)
            except BaseException:
                remove_quietly(artifact.path)
                raise

        entry = AppliedSkill(
            skill_id=skill.id,
            params=dict(params),
            applied_at=datetime.now(timezone.utc),
        )
        updated = current.model_copy(
            update={
                "working_path": str(artifact.path),
                "current_extension": artifact.extension,
                "size": artifact.size,
                "preview_data_url": preview,
                "applied_skills": [*current.applied_skills, entry],
            }
        )

        try:
            self.store.commit(updated)
        except WorkingFileNotFoundError:
            remove_quietly(artifact.path)
            raise

        self.runner.discard(current.working_path, self.store.base_path(file_id))
        self.logger.info(
            "skill_applied",
            file_id=file_id,
            skill_id=skill.id,
            history=len(updated.applied_skills),
        )
        return updated

    def _fail(self, file_id: str, skill: Skill, exc: FilesmithError) -> FileFailure:
        self.logger.warning(
            "apply_failed",
            file_id=file_id,
            skill_id=skill.id,
            error_type=type(exc).__name__,
            detail=str(exc),
        )
        return FileFailure.from_error(file_id, exc)
