"""Engine facade -- the operations exposed to every transport.

:class:`SkillEngine` owns one instance of each long-lived component
(registry, store, session, workspace) and routes calls to the executor,
replay engine and export pipeline.  Inputs and outputs are plain pydantic
models so the HTTP layer (or any other caller) never holds live handles.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from filesmith.config import Settings
from filesmith.drivers import META_DRIVER, DriverRegistry, build_default_drivers
from filesmith.engine.executor import SkillExecutor
from filesmith.engine.export import ExportPipeline
from filesmith.engine.models import (
    AddFilesResult,
    ExportReport,
    FileFailure,
    Mode,
    SessionSnapshot,
    SkillResult,
    WorkingFile,
    summarize,
)
from filesmith.engine.preview import build_preview
from filesmith.engine.replay import ReplayEngine
from filesmith.engine.runner import StepRunner
from filesmith.engine.session import SessionManager
from filesmith.engine.store import WorkingFileStore
from filesmith.engine.workspace import Workspace
from filesmith.skills.models import Skill, SkillSource
from filesmith.skills.permissions import elevated_permissions, requires_trust
from filesmith.skills.registry import SkillRegistry
from filesmith.skills.validator import validate_params
from filesmith.storage.settings import SettingsStore
from filesmith.storage.trust import TrustStore
from filesmith.utils.exceptions import (
    DriverExecutionError,
    FilesmithError,
    SkillTrustError,
    WorkingFileNotFoundError,
)
from filesmith.utils.file_utils import atomic_copy, extension_of
from filesmith.utils.logging import get_logger

logger = get_logger("engine.service")


class SkillEngine:
    def __init__(
        self,
        registry: SkillRegistry,
        drivers: DriverRegistry,
        workspace: Workspace,
        session: SessionManager,
        trust: TrustStore | None = None,
        max_parallel: int = 4,
        preview_max_width: int = 520,
    ) -> None:
        self.registry = registry
        self.drivers = drivers
        self.workspace = workspace
        self.session = session
        self.trust = trust
        self.preview_max_width = preview_max_width

        self.store = WorkingFileStore()
        self.runner = StepRunner(drivers, workspace)
        self.executor = SkillExecutor(
            registry,
            self.store,
            self.runner,
            session,
            max_parallel=max_parallel,
            preview_max_width=preview_max_width,
        )
        self.replay = ReplayEngine(registry, self.store, self.runner, preview_max_width)
        self.exporter = ExportPipeline(self.store, session, max_parallel=max_parallel)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def get_session(self) -> SessionSnapshot:
        return self.session.snapshot()

    def set_mode(self, mode: str | Mode) -> SessionSnapshot:
        return self.session.set_mode(mode)

    async def clear_all(self) -> SessionSnapshot:
        """Discard every working file and reset the session.

        Any ``fileId`` handed out before this call is invalid afterwards.
        """
        dropped = self.store.clear()
        snapshot = self.session.reset()
        old_root = self.workspace.rotate()
        await asyncio.to_thread(Workspace.discard, old_root)
        logger.info("session_cleared", files=dropped)
        return snapshot

    # ------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------

    def get_skills(self, query: str = "", input_types: Iterable[str] = ()) -> list[Skill]:
        return self.registry.search(query, input_types)

    def get_skill(self, skill_id: str) -> Skill:
        return self.registry.get(skill_id)

    def get_skill_trust(self, skill_id: str) -> bool:
        skill = self.registry.get(skill_id)
        return self.trust is not None and self.trust.is_trusted(skill.id)

    def set_skill_trust(self, skill_id: str, trusted: bool) -> Skill:
        skill = self.registry.get(skill_id)
        if self.trust is not None:
            self.trust.set_trusted(skill.id, trusted)
        return skill

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def list_files(self) -> list[WorkingFile]:
        return self.store.list_files()

    async def add_files(self, paths: Iterable[str]) -> AddFilesResult:
        """Import *paths* into the session.

        Each source is copied into the workspace as the immutable replay
        origin; unreadable paths are reported per file.
        """
        added: list[WorkingFile] = []
        failures: list[FileFailure] = []

        for raw in dict.fromkeys(paths):
            try:
                added.append(await self._import(raw))
            except FilesmithError as exc:
                logger.warning("file_import_failed", path=raw, error=str(exc))
                failures.append(FileFailure.from_error(raw, exc))
            except OSError as exc:
                logger.warning("file_import_failed", path=raw, error=str(exc))
                failures.append(
                    FileFailure(file_id=raw, error=type(exc).__name__, detail=str(exc))
                )

        return AddFilesResult(
            files=added,
            failures=failures,
            message=summarize("Added", len(added), failures),
        )

    async def _import(self, raw: str) -> WorkingFile:
        source = Path(raw).expanduser()
        if not source.is_file():
            raise WorkingFileNotFoundError(raw)

        file_id = uuid.uuid4().hex
        extension = extension_of(source)
        self.workspace.ensure_file_dir(file_id)
        base = self.workspace.base_path(file_id, extension)
        await asyncio.to_thread(atomic_copy, source, base)

        data = WorkingFile(
            id=file_id,
            name=source.stem,
            extension=extension,
            current_extension=extension,
            original_path=str(source.resolve()),
            working_path=str(base),
            size=base.stat().st_size,
            preview_data_url=await build_preview(base, self.preview_max_width),
        )
        return self.store.add(data, base)

    async def execute_skill(
        self,
        file_ids: Iterable[str],
        skill_id: str,
        params: dict[str, Any] | None = None,
    ) -> SkillResult:
        skill = self.registry.get(skill_id)
        self._check_trust(skill)
        if skill.driver == META_DRIVER:
            return await self._run_meta(skill, list(file_ids), params)
        return await self.executor.execute(file_ids, skill.id, params)

    async def remove_skill(self, file_id: str, index: int) -> WorkingFile:
        return await self.replay.remove_application(file_id, index)

    async def verify_file(self, file_id: str) -> bool:
        return await self.replay.verify(file_id)

    async def export_files(self, file_ids: Iterable[str] = ()) -> ExportReport:
        return await self.exporter.export(file_ids)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_trust(self, skill: Skill, depth: int = 0) -> None:
        """Refuse untrusted community skills that hold elevated permissions.

        Pipeline steps are checked too.
        """
        if skill.source == SkillSource.COMMUNITY:
            if requires_trust(skill.permissions) and not self.get_skill_trust(skill.id):
                raise SkillTrustError(skill.id, elevated_permissions(skill.permissions))

        if depth >= 6:
            return
        for step in skill.executor.steps:
            if step.skill_id in self.registry:
                self._check_trust(self.registry.get(step.skill_id), depth + 1)

    async def _run_meta(
        self,
        skill: Skill,
        file_ids: list[str],
        params: dict[str, Any] | None,
    ) -> SkillResult:
        values = validate_params(skill.params, params)
        failures: list[FileFailure] = []
        handler = skill.executor.handler or skill.id

        if handler == "switch_to_batch":
            self.session.set_mode(Mode.BATCH)
            message = "Switched to batch mode"
        elif handler == "switch_to_per_file":
            self.session.set_mode(Mode.PER_FILE)
            message = "Switched to per-file mode"
        elif handler == "set_output_folder":
            snapshot = self.session.set_output_folder(str(values.get("folder", "")))
            message = (
                f"Output folder set to {snapshot.output_folder}"
                if snapshot.output_folder
                else "Output folder reset to each file's own folder"
            )
        elif handler == "set_naming_pattern":
            snapshot = self.session.set_naming_pattern(str(values.get("pattern", "")))
            message = f"Naming pattern set to {snapshot.naming_pattern}"
        elif handler == "export":
            report = await self.exporter.export(file_ids)
            failures = report.failures
            message = report.message
        elif handler == "clear_all":
            await self.clear_all()
            message = "Cleared all files"
        else:
            raise DriverExecutionError(META_DRIVER, f"unknown session action '{handler}'")

        logger.info("meta_skill_applied", skill_id=skill.id, handler=handler)
        return SkillResult(
            updated_files=[],
            session=self.session.snapshot(),
            message=message,
            failures=failures,
        )


def build_engine(config: Settings) -> SkillEngine:
    """Wire a :class:`SkillEngine` from *config*.

    Raises :class:`UnknownDriverError` when the catalog references a driver
    tag nothing is registered under.
    """
    registry = SkillRegistry()
    registry.discover(config.skills_core_dir, config.skills_community_dir)

    drivers = build_default_drivers(
        registry,
        allowed_commands=config.cli_allowed_commands,
        cli_timeout=config.cli_timeout_seconds,
    )
    drivers.check_catalog(registry.list_all())

    defaults = SessionSnapshot(
        mode=Mode(config.default_mode),
        output_folder=config.output_folder,
        naming_pattern=config.naming_pattern,
    )
    session = SessionManager(defaults, SettingsStore(config.config_dir))

    engine = SkillEngine(
        registry,
        drivers,
        Workspace(config.workspace_dir),
        session,
        trust=TrustStore(config.config_dir),
        max_parallel=config.max_parallel,
        preview_max_width=config.preview_max_width,
    )
    logger.info(
        "engine_ready",
        skills=len(registry),
        drivers=drivers.tags(),
        workspace=str(engine.workspace.root),
    )
    return engine
