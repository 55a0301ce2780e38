"""
Error type and centralized error handlers.

Every failure leaves the API as ``{"status": ..., "message": ...}`` with the
matching HTTP status code.
"""

import logging

from bson.errors import InvalidId
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """An expected, client-facing failure carrying its HTTP status code."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.status = "fail" if 400 <= status_code < 500 else "error"
        self.is_operational = True


def error_response(status_code: int, message: str) -> JSONResponse:
    status = "fail" if 400 <= status_code < 500 else "error"
    return JSONResponse(status_code=status_code, content={"status": status, "message": message})


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = str(err.get("msg", "")).removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid input data. " + "; ".join(parts)


def _duplicate_message(exc: DuplicateKeyError) -> str:
    key_value = (exc.details or {}).get("keyValue") or {}
    if key_value:
        value = ", ".join(str(v) for v in key_value.values())
        return f"Duplicate field value: {value}. Please use another value!"
    return "Duplicate field value. Please use another value!"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(404, f"Can't find {request.url.path} on this server!")
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(400, _validation_message(exc))

    @app.exception_handler(DuplicateKeyError)
    async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
        return error_response(400, _duplicate_message(exc))

    @app.exception_handler(InvalidId)
    async def invalid_id_handler(request: Request, exc: InvalidId):
        return error_response(400, f"Invalid id: {exc}")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        if settings.is_development:
            return error_response(500, str(exc))
        return error_response(500, "Something went very wrong!")
