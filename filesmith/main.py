from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from filesmith import __version__
from filesmith.api.v1.middleware.error_handler import ErrorHandlerMiddleware
from filesmith.api.v1.middleware.logging_middleware import LoggingMiddleware
from filesmith.api.v1.router import v1_router
from filesmith.config import settings
from filesmith.engine.service import SkillEngine, build_engine
from filesmith.utils.logging import get_logger, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(debug=settings.debug)
    logger = get_logger("startup")
    logger.info("filesmith_starting", version=__version__)

    # An engine injected through create_app() wins over the configured one.
    if getattr(app.state, "engine", None) is None:
        app.state.engine = build_engine(settings)
    engine: SkillEngine = app.state.engine
    logger.info("engine_attached", skill_count=len(engine.registry))

    yield

    await engine.clear_all()
    logger.info("filesmith_stopped")


def create_app(engine: SkillEngine | None = None) -> FastAPI:
    app = FastAPI(
        title="filesmith",
        description="Apply, replay and export chains of file skills",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = engine

    # add_middleware() wraps, so the last one added is the outermost layer.
    # Engine errors become JSON bodies with a mapped status code.
    app.add_middleware(ErrorHandlerMiddleware)
    # Logging records the mapped status and tags every response with its id.
    app.add_middleware(LoggingMiddleware)
    # CORS wraps everything, error bodies included.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("filesmith.main:app", host=settings.host, port=settings.port)
