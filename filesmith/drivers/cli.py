"""Declarative command-line skills (ffmpeg, ImageMagick, ...).

Lets skills be authored entirely in JSON: the command and an argument
template, with ``{{input}}``, ``{{output}}`` and ``{{<param>}}``
placeholders.  Arguments are passed as a vector, never through a shell.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from filesmith.drivers.base import BaseDriver
from filesmith.skills import permissions
from filesmith.skills.models import Skill, SkillSource
from filesmith.utils.exceptions import DriverExecutionError
from filesmith.utils.logging import get_logger

logger = get_logger(__name__)

_MAX_ERROR_CHARS = 2000


def render_argument(
    template: str,
    input_path: Path,
    output_path: Path,
    params: dict[str, Any],
) -> str:
    out = template.replace("{{input}}", str(input_path))
    out = out.replace("{{output}}", str(output_path))
    for key, value in params.items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        out = out.replace("{{" + key + "}}", str(value))
    return out


class CLIDriver(BaseDriver):
    """Runs ``skill.executor.command`` as a subprocess.

    Parameters
    ----------
    allowed_commands:
        Executables community skills may run without the
        ``tools.exec.any`` permission.
    default_timeout:
        Seconds to wait when the skill does not set ``timeoutMs``.
    """

    driver_id = "cli"

    def __init__(
        self,
        allowed_commands: Iterable[str] = ("ffmpeg", "magick", "convert", "identify"),
        default_timeout: float = 120.0,
    ) -> None:
        self.allowed_commands = {c.lower() for c in allowed_commands}
        self.default_timeout = default_timeout

    async def transform(
        self,
        input_path: Path,
        output_path: Path,
        skill: Skill,
        params: dict[str, Any],
    ) -> None:
        spec = skill.executor
        if spec.type != "cli":
            raise DriverExecutionError(self.driver_id, "cli driver requires executor.type=cli")
        if not spec.command.strip():
            raise DriverExecutionError(self.driver_id, "cli driver requires executor.command")
        self._check_permissions(skill)

        args = [render_argument(a, input_path, output_path, params) for a in spec.args]
        timeout = spec.timeout_ms / 1000 if spec.timeout_ms > 0 else self.default_timeout

        logger.debug("cli_start", skill_id=skill.id, command=spec.command, args=args)

        try:
            proc = await asyncio.create_subprocess_exec(
                spec.command,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise DriverExecutionError(
                self.driver_id, f"command not found: {spec.command}"
            ) from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
        except asyncio.TimeoutError as exc:
            await self._kill(proc)
            raise DriverExecutionError(
                self.driver_id, f"{spec.command} timed out after {timeout:g}s"
            ) from exc
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip() or stdout.decode(errors="replace").strip()
            detail = detail[-_MAX_ERROR_CHARS:] or f"exit code {proc.returncode}"
            raise DriverExecutionError(self.driver_id, f"{spec.command} failed: {detail}")

        if not output_path.exists():
            raise DriverExecutionError(
                self.driver_id, f"{spec.command} exited cleanly but wrote no output"
            )

    def _check_permissions(self, skill: Skill) -> None:
        if permissions.TOOLS_EXEC not in skill.permissions:
            raise DriverExecutionError(
                self.driver_id,
                f"skill missing required permission: {permissions.TOOLS_EXEC}",
            )
        if skill.source != SkillSource.COMMUNITY:
            return
        if permissions.TOOLS_EXEC_ANY in skill.permissions:
            return
        command = Path(skill.executor.command).name.lower()
        if command not in self.allowed_commands:
            raise DriverExecutionError(
                self.driver_id,
                f"community skill requires {permissions.TOOLS_EXEC_ANY} to run '{command}'",
            )

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
