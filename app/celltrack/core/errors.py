import logging
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.celltrack.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition

logger = logging.getLogger(__name__)

_LOCK_MARKERS = (
    "lock timeout",
    "deadlock detected",
    "database is locked",
    "could not obtain lock",
)


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")


def _mark(request: Request, code: str, exc: Exception) -> None:
    # read back by the request log middleware
    request.state.error_code = code
    request.state.error_class = exc.__class__.__name__


def _json_safe(value):
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def error_response(
    definition: ErrorDefinition,
    trace_id: str,
    details: object = None,
    *,
    message: str | None = None,
    status_code: int | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code or definition.status_code,
        content={
            "code": definition.code,
            "message": message or definition.message,
            "details": _json_safe(details),
            "trace_id": trace_id,
        },
        headers=headers,
    )


def _validation_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        loc = [item for item in error.get("loc", []) if item not in {"body", "query", "path", "header"}]
        errors.append(
            {
                "field": ".".join(str(item) for item in loc) or None,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
            }
        )
    return errors


def _definition_for_status(status_code: int) -> ErrorDefinition:
    if status_code == 404:
        return ErrorCatalog.NOT_FOUND
    if status_code == 401:
        return ErrorCatalog.INVALID_TOKEN
    return ErrorDefinition("HTTP_ERROR", "HTTP error", status_code)


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        _mark(request, exc.error.code, exc)
        return error_response(exc.error, _trace_id(request), exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        definition = _definition_for_status(exc.status_code)
        _mark(request, definition.code, exc)
        message = exc.detail if isinstance(exc.detail, str) else None
        return error_response(
            definition,
            _trace_id(request),
            message=message,
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        _mark(request, ErrorCatalog.VALIDATION_ERROR.code, exc)
        return error_response(
            ErrorCatalog.VALIDATION_ERROR,
            _trace_id(request),
            {"errors": _validation_errors(exc)},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        # two intakes of the same IMEI racing past the existence check
        _mark(request, ErrorCatalog.DUPLICATE_KEY.code, exc)
        logger.warning("Integrity violation", extra={"trace_id": _trace_id(request)})
        return error_response(ErrorCatalog.DUPLICATE_KEY, _trace_id(request))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        if isinstance(exc, OperationalError) and any(marker in str(exc).lower() for marker in _LOCK_MARKERS):
            definition = ErrorCatalog.LOCK_TIMEOUT
        else:
            definition = ErrorCatalog.INTERNAL_ERROR
            logger.exception("Unhandled error", extra={"trace_id": _trace_id(request)})
        _mark(request, definition.code, exc)
        return error_response(definition, _trace_id(request), {"type": exc.__class__.__name__})
