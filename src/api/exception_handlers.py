"""Exception handlers: every failure leaves the API in one error envelope.

Envelope: ``{"error_code", "kind", "message", "details"}``. ``kind`` is the
coarse class callers branch on (retry vs. surface to the user).
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.v1.schemas.common import ErrorResponse
from core.config import settings
from core.exceptions import AppException, ErrorCode, ErrorKind

logger = structlog.get_logger()


def error_envelope(
    error_code: str, kind: str, message: str, details: object | None = None
) -> dict[str, object]:
    return ErrorResponse(
        error_code=error_code, kind=kind, message=message, details=details
    ).model_dump()


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        """Render domain errors with their kind and status."""
        log = logger.error if exc.kind == ErrorKind.UPSTREAM else logger.warning
        log(
            "app_exception",
            error_code=exc.error_code.value,
            kind=exc.kind.value,
            message=exc.message,
            reason=getattr(exc, "reason", None),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.error_code.value, exc.kind.value, exc.message, exc.details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle HTTP exceptions from FastAPI/Starlette (e.g. unknown routes)."""
        kind = ErrorKind.NOT_FOUND if exc.status_code == 404 else ErrorKind.INTERNAL
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope("HTTP_ERROR", kind.value, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        logger.info("validation_error", error_count=len(exc.errors()))
        return JSONResponse(
            status_code=422,
            content=error_envelope(
                ErrorCode.VALIDATION_ERROR.value,
                ErrorKind.VALIDATION.value,
                "Request validation failed",
                [
                    {
                        "field": ".".join(str(x) for x in error["loc"]),
                        "message": error["msg"],
                        "type": error["type"],
                    }
                    for error in exc.errors()
                ],
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            request_id=request_id,
            exc_info=True,
        )

        message = "An unexpected error occurred"
        if not settings.is_production:
            message = str(exc)

        return JSONResponse(
            status_code=500,
            content=error_envelope(
                ErrorCode.INTERNAL_ERROR.value,
                ErrorKind.INTERNAL.value,
                message,
                {"request_id": request_id},
            ),
        )
