"""Global error-handling middleware.

Catches engine exceptions and translates them into structured JSON error
responses with appropriate HTTP status codes.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from filesmith.utils.exceptions import (
    DriverExecutionError,
    ExportError,
    FilesmithError,
    IndexOutOfRangeError,
    InvalidModeError,
    ParamValidationError,
    ReplayError,
    SkillDefinitionError,
    SkillNotFoundError,
    SkillTrustError,
    UnknownDriverError,
    UnsupportedInputTypeError,
    WorkingFileNotFoundError,
)
from filesmith.utils.logging import get_logger

logger = get_logger(__name__)

# Map exception types to HTTP status codes.
_STATUS_MAP: dict[type, int] = {
    SkillNotFoundError: 404,
    WorkingFileNotFoundError: 404,
    ParamValidationError: 422,
    UnsupportedInputTypeError: 422,
    IndexOutOfRangeError: 422,
    InvalidModeError: 422,
    SkillTrustError: 403,
    DriverExecutionError: 500,
    ReplayError: 500,
    ExportError: 500,
    UnknownDriverError: 500,
    SkillDefinitionError: 500,
}


def error_body(exc: FilesmithError) -> dict:
    body: dict = {"error": type(exc).__name__, "detail": str(exc)}
    if isinstance(exc, ParamValidationError):
        body["field"] = exc.field
    elif isinstance(exc, ReplayError):
        body["failedIndex"] = exc.failed_index
    return body


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware that wraps every request in a try/except and converts
    known exceptions to JSON error responses.

    Unknown exceptions are logged and returned as HTTP 500.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)

        except FilesmithError as exc:
            status_code = _STATUS_MAP.get(type(exc), 500)
            logger.warning(
                "handled_error",
                error_type=type(exc).__name__,
                status_code=status_code,
                detail=str(exc),
                path=request.url.path,
            )
            return JSONResponse(status_code=status_code, content=error_body(exc))

        except Exception as exc:
            logger.error(
                "unhandled_error",
                error_type=type(exc).__name__,
                detail=str(exc),
                path=request.url.path,
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "InternalServerError",
                    "detail": "An unexpected error occurred.  Please try again later.",
                },
            )
