"""Skill-application engine -- working files, execution, replay, export.

Public API::

    from filesmith.engine import (
        ExportPipeline,
        ReplayEngine,
        SessionManager,
        SkillEngine,
        SkillExecutor,
        WorkingFileStore,
        build_engine,
    )
"""

from filesmith.engine.executor import SkillExecutor
from filesmith.engine.export import ExportPipeline
from filesmith.engine.replay import ReplayEngine
from filesmith.engine.service import SkillEngine, build_engine
from filesmith.engine.session import SessionManager
from filesmith.engine.store import WorkingFileStore

__all__ = [
    "ExportPipeline",
    "ReplayEngine",
    "SessionManager",
    "SkillEngine",
    "SkillExecutor",
    "WorkingFileStore",
    "build_engine",
]
