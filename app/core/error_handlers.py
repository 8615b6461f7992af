"""
Централизованные обработчики ошибок для FastAPI.

Все ответы об ошибках имеют один формат: {"error", "message", "details", "path"}.
"""

import json
import logging
import re
import traceback
from typing import Union
from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    TimeoutError,
    DisconnectionError,
)
from asyncpg.exceptions import (
    PostgresError,
    ConnectionFailureError,
    ConnectionDoesNotExistError,
    TooManyConnectionsError,
)

from app.core.config import DEBUG
from app.core.exceptions import (
    BaseAppException,
    ConflictError,
    DatabaseError,
    DatabaseConnectionError,
    DatabaseTimeoutError,
    DatabaseIntegrityError,
    DuplicateError,
    SlotConflictError,
    ValidationError,
)
from app.turf.models.booking_slots import BOOKED_SLOT_INDEX

logger = logging.getLogger(__name__)

_PG_CONSTRAINT_RE = re.compile(r'constraint "([^"]+)"')
# SQLite: "UNIQUE constraint failed: courts.name, courts.sport_type"
_SQLITE_COLUMNS_RE = re.compile(r"constraint failed: ([\w., ]+)")

_SQLITE_COLUMN_CONSTRAINTS = {
    "booking_slots.court_id, booking_slots.booking_date, booking_slots.slot_time": BOOKED_SLOT_INDEX,
    "courts.name, courts.sport_type": "uq_courts_name_sport_type",
    "payments.booking_id": "payments_booking_id_key",
}


def _error_body(request: Request, error: str, message: str, details=None) -> dict:
    return {
        "error": error,
        "message": message,
        "details": details or {},
        "path": request.url.path,
    }


async def app_exception_handler(
    request: Request, exc: BaseAppException
) -> JSONResponse:
    """Ошибки приложения: 4xx пишутся как warning, 5xx как error"""

    log_level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        log_level,
        f"{exc.error_code}: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.error_code, exc.message, exc.details),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra={"status_code": exc.status_code, "path": request.url.path},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, "HTTP_ERROR", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def _json_safe(value):
    if value is None:
        return None
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


async def validation_exception_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """Ошибки схем запроса (422): по одной записи на поле"""

    fields = [
        {
            "field": ".".join(str(part) for part in error.get("loc", []) if part != "body"),
            "message": error.get("msg", "Invalid value"),
            "type": error.get("type", "value_error"),
            "input": _json_safe(error.get("input")),
        }
        for error in exc.errors()
    ]

    logger.warning(
        f"Request validation failed on {request.method} {request.url.path}",
        extra={"fields": fields, "path": request.url.path},
    )

    return JSONResponse(
        status_code=422,
        content=_error_body(
            request,
            "VALIDATION_ERROR",
            f"Validation failed for {len(fields)} field(s)",
            {"fields": fields},
        ),
    )


def constraint_name(exc: IntegrityError) -> str:
    """Имя нарушенного ограничения; для SQLite восстанавливается по списку колонок"""
    orig = exc.orig
    name = getattr(orig, "constraint_name", None) or getattr(
        getattr(orig, "__cause__", None), "constraint_name", None
    )
    if name:
        return name

    message = str(orig)
    match = _PG_CONSTRAINT_RE.search(message)
    if match:
        return match.group(1)

    match = _SQLITE_COLUMNS_RE.search(message)
    if match:
        columns = match.group(1).strip()
        return _SQLITE_COLUMN_CONSTRAINTS.get(columns, columns)
    return "unknown"


def integrity_to_app_exception(exc: IntegrityError) -> BaseAppException:
    """Нарушения известных ограничений превращаются в понятные клиенту ошибки"""
    name = constraint_name(exc)

    if name == BOOKED_SLOT_INDEX:
        return SlotConflictError(race=True)
    if name == "uq_courts_name_sport_type":
        return DuplicateError("Court", "name", "(name, sport_type)")
    if name == "payments_booking_id_key":
        return ConflictError("Booking already has a payment")
    if name.startswith("ck_"):
        return ValidationError("Value violates a data rule", {"constraint": name})
    return DatabaseIntegrityError(name)


async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    if isinstance(exc, IntegrityError):
        app_exc = integrity_to_app_exception(exc)
    elif isinstance(exc, (OperationalError, DisconnectionError)):
        app_exc = DatabaseConnectionError("Database connection lost")
    elif isinstance(exc, TimeoutError):
        app_exc = DatabaseTimeoutError("database_operation", 30)
    else:
        app_exc = DatabaseError("Database operation failed")

    logger.error(
        f"Database exception on {request.method} {request.url.path}: {type(exc).__name__}",
        extra={
            "exception_type": type(exc).__name__,
            "error_code": app_exc.error_code,
            "original_error": str(getattr(exc, "orig", exc)),
        },
    )

    return await app_exception_handler(request, app_exc)


async def postgres_exception_handler(
    request: Request, exc: PostgresError
) -> JSONResponse:
    """asyncpg-ошибки, не обёрнутые SQLAlchemy"""

    if isinstance(exc, (ConnectionFailureError, ConnectionDoesNotExistError)):
        app_exc = DatabaseConnectionError("PostgreSQL connection failed")
    elif isinstance(exc, TooManyConnectionsError):
        app_exc = DatabaseConnectionError("Too many database connections")
    else:
        app_exc = DatabaseError(
            "Database operation failed",
            details={"postgres_code": getattr(exc, "sqlstate", None)},
        )

    logger.error(
        f"PostgreSQL exception: {type(exc).__name__}",
        extra={"postgres_code": getattr(exc, "sqlstate", None), "path": request.url.path},
    )

    return await app_exception_handler(request, app_exc)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        extra={"exception_type": type(exc).__name__, "traceback": traceback.format_exc()},
    )

    # детали только в development
    details = {}
    if DEBUG:
        details = {"exception_type": type(exc).__name__, "message": str(exc)}

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request, "INTERNAL_SERVER_ERROR", "An unexpected error occurred", details
        ),
    )


def setup_exception_handlers(app):
    app.add_exception_handler(BaseAppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PydanticValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(PostgresError, postgres_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")
