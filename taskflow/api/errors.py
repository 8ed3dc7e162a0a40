import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import TaskFlowError

logger = logging.getLogger(__name__)

_LOCATION_PARTS = {"body", "query", "path", "header"}


def _error(request: Request, status_code: int, message: str, **extra) -> JSONResponse:
    content = {"error": message, "status": status_code, "path": request.url.path}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def describe_validation_errors(errors: list[dict]) -> str:
    """Human message naming the first failing field or rule."""
    if not errors:
        return "Validation error"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in _LOCATION_PARTS)
    msg = first.get("msg", "invalid value")
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"Validation error: {field}: {msg}" if field else f"Validation error: {msg}"


def register_exception_handlers(app: FastAPI) -> None:
    """Attach simple, consistent JSON error handlers."""

    @app.exception_handler(TaskFlowError)
    async def taskflow_error_handler(request: Request, exc: TaskFlowError):
        if exc.status_code >= 500:
            logger.error("request failed path=%s error=%s", request.url.path, exc.message)
            return _error(request, exc.status_code, "Internal server error")
        return _error(request, exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(
            request,
            exc.status_code,
            exc.detail if isinstance(exc.detail, str) else "HTTPError",
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        return _error(
            request,
            400,
            describe_validation_errors(list(errors)),
            details=jsonable_encoder(errors),
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("database error path=%s", request.url.path)
        return _error(request, 500, "Internal server error")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled error path=%s", request.url.path)
        return _error(request, 500, "Internal server error")
