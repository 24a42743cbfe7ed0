"""Runs one skill step against one artifact with temp-then-swap writes.

The driver only ever sees a hidden temp path; the revision becomes visible
under its final name via ``os.replace`` once the driver has succeeded, so
no reader observes a half-written artifact.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from filesmith.drivers.base import BaseDriver, DriverRegistry
from filesmith.engine.workspace import Workspace
from filesmith.skills.models import Skill
from filesmith.utils.exceptions import DriverExecutionError, FilesmithError
from filesmith.utils.file_utils import remove_quietly, temp_sibling
from filesmith.utils.logging import get_logger

logger = get_logger("engine.runner")


@dataclass(frozen=True)
class Artifact:
    path: Path
    extension: str
    size: int


class StepRunner:
    def __init__(self, drivers: DriverRegistry, workspace: Workspace) -> None:
        self.drivers = drivers
        self.workspace = workspace

    def driver_for(self, skill: Skill) -> BaseDriver:
        return self.drivers.get(skill.driver)

    async def run(
        self,
        file_id: str,
        skill: Skill,
        driver: BaseDriver,
        input_path: str | Path,
        input_extension: str,
        params: dict[str, Any],
    ) -> Artifact:
        """Transform *input_path* into a new revision of *file_id*.

        Any driver failure surfaces as a :class:`FilesmithError` (wrapped in
        :class:`DriverExecutionError` when the driver raised something
        else); the temp file is always removed.
        """
        extension = driver.output_extension(skill, input_extension)
        final = self.workspace.new_revision_path(file_id, extension)
        tmp = temp_sibling(final)

        try:
            await driver.transform(Path(input_path), tmp, skill, params)
            if not tmp.exists():
                raise DriverExecutionError(driver.driver_id, "driver produced no output")
            os.replace(tmp, final)
        except (FilesmithError, asyncio.CancelledError):
            raise
        except Exception as exc:
            logger.warning(
                "driver_raised",
                driver=driver.driver_id,
                skill_id=skill.id,
                error=str(exc),
                exc_info=True,
            )
            raise DriverExecutionError(driver.driver_id, str(exc) or type(exc).__name__) from exc
        finally:
            remove_quietly(tmp)

        return Artifact(path=final, extension=extension, size=final.stat().st_size)

    def discard(self, path: str | Path, base_path: Path) -> None:
        """Delete a superseded revision; the base copy is never removed."""
        path = Path(path)
        if path == base_path or not self.workspace.owns(path):
            return
        remove_quietly(path)
