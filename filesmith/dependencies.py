"""FastAPI dependency functions for injection into endpoint handlers.

The engine is expensive to build (catalog discovery, driver validation,
workspace creation), so it is constructed once during the app lifespan,
stored on ``app.state`` and simply looked up here.
"""

from __future__ import annotations

from fastapi import Request

from filesmith.engine.service import SkillEngine


def get_engine(request: Request) -> SkillEngine:
    """Return the process-wide :class:`SkillEngine` stored on ``app.state``."""
    return request.app.state.engine
