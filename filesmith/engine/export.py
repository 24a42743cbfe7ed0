"""Export pipeline -- materialises current artifacts under the naming pattern."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable
from pathlib import Path

import aiofiles  # type: ignore[import-untyped]

from filesmith.engine.models import (
    ExportReport,
    ExportResult,
    FileFailure,
    WorkingFile,
    summarize,
)
from filesmith.engine.session import SessionManager
from filesmith.engine.store import WorkingFileStore
from filesmith.utils.exceptions import ExportError, FilesmithError
from filesmith.utils.file_utils import ensure_dir, remove_quietly, safe_filename, temp_sibling
from filesmith.utils.logging import get_logger

logger = get_logger("engine.export")

_CHUNK_SIZE = 1024 * 1024


def render_name(pattern: str, data: WorkingFile, index: int) -> str:
    """Fill ``{name}``, ``{ext}``, ``{skill}`` and ``{index}`` in *pattern*.

    Characters outside letters, digits, space, ``.``, ``_`` and ``-`` are
    dropped.  A result without an extension gets ``.<ext>`` appended.
    """
    ext = data.current_extension
    skill = data.applied_skills[-1].skill_id if data.applied_skills else "original"
    skill = skill.replace(" ", "_").replace("-", "_")

    rendered = (
        pattern.replace("{name}", safe_filename(data.name) or "file")
        .replace("{ext}", ext)
        .replace("{skill}", skill)
        .replace("{index}", str(index))
    )
    rendered = safe_filename(rendered.replace("/", "_").replace("\\", "_")) or "file"
    if ext and "." not in rendered:
        rendered = f"{rendered}.{ext}"
    return rendered


def disambiguate(path: Path, attempt: int) -> Path:
    """``out.png`` -> ``out-1.png``, ``out-2.png`` ..."""
    if attempt == 0:
        return path
    return path.with_name(f"{path.stem}-{attempt}{path.suffix}")


class ExportPipeline:
    """Copy working artifacts out of the workspace.

    Never overwrites: colliding names get a numeric suffix.  Each file is
    exported independently; failures are collected, not raised.
    """

    def __init__(
        self,
        store: WorkingFileStore,
        session: SessionManager,
        max_parallel: int = 4,
    ) -> None:
        self.store = store
        self.session = session
        self._slots = asyncio.Semaphore(max(1, max_parallel))
        self._reserve_lock = asyncio.Lock()

    async def export(self, file_ids: Iterable[str] = ()) -> ExportReport:
        ids = list(dict.fromkeys(file_ids)) or self.store.file_ids()
        snapshot = self.session.snapshot()

        outcomes = await asyncio.gather(
            *(
                self._export_one(fid, position, snapshot.output_folder, snapshot.naming_pattern)
                for position, fid in enumerate(ids, start=1)
            )
        )

        results = [o for o in outcomes if isinstance(o, ExportResult)]
        failures = [o for o in outcomes if isinstance(o, FileFailure)]
        logger.info("export_complete", exported=len(results), failed=len(failures))
        return ExportReport(
            results=results,
            failures=failures,
            message=summarize("Exported", len(results), failures),
        )

    async def _export_one(
        self,
        file_id: str,
        index: int,
        output_folder: str,
        naming_pattern: str,
    ) -> ExportResult | FileFailure:
        try:
            async with self.store.lock(file_id), self._slots:
                data = self.store.get(file_id)
                folder = Path(output_folder) if output_folder else Path(data.original_path).parent
                target = await self._reserve(folder / render_name(naming_pattern, data, index))
                try:
                    await self._copy(Path(data.working_path), target)
                except OSError as exc:
                    remove_quietly(target)
                    raise ExportError(file_id, str(exc)) from exc
        except FilesmithError as exc:
            logger.warning("export_failed", file_id=file_id, error=str(exc))
            return FileFailure.from_error(file_id, exc)
        except OSError as exc:
            logger.warning("export_failed", file_id=file_id, error=str(exc))
            return FileFailure.from_error(file_id, ExportError(file_id, str(exc)))

        logger.info("export_written", file_id=file_id, output_path=str(target))
        return ExportResult(file_id=file_id, output_path=str(target))

    async def _reserve(self, candidate: Path) -> Path:
        """Claim the first free variant of *candidate* with an empty placeholder."""
        async with self._reserve_lock:
            ensure_dir(candidate.parent)
            attempt = 0
            while True:
                path = disambiguate(candidate, attempt)
                try:
                    path.touch(exist_ok=False)
                except FileExistsError:
                    attempt += 1
                    continue
                return path

    @staticmethod
    async def _copy(source: Path, target: Path) -> None:
        tmp = temp_sibling(target)
        try:
            async with aiofiles.open(source, mode="rb") as src, aiofiles.open(tmp, mode="wb") as dst:
                while chunk := await src.read(_CHUNK_SIZE):
                    await dst.write(chunk)
            os.replace(tmp, target)
        finally:
            remove_quietly(tmp)
