"""Exception → HTTP response mapping for the Ordering API."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.errors import DomainError

logger = structlog.get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Render domain errors as ``{success: false, kind, message, ...}`` bodies.

    Protean's own exceptions (ValidationError, ObjectNotFoundError, ...) keep
    the framework's mapping.
    """
    register_exception_handlers(app)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        log = logger.warning if exc.status_code >= 500 else logger.info
        log("Request failed", path=request.url.path, kind=exc.kind, status_code=exc.status_code, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "kind": "ValidationError",
                "message": errors[0]["message"] if errors else "Invalid request",
                "errors": errors,
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=500,
            content={"success": False, "kind": "ServerError", "message": "Server error"},
        )
