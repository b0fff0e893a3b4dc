# movie_catalog/errors.py
import logging
import traceback
from typing import Optional, Tuple

import jwt
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config

SERVER_ERROR_MESSAGE = "Server error"


class AppError(Exception):
    """An error that already knows its HTTP status and client-facing message."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class ConflictError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return ", ".join(parts) or "Invalid request"


def _integrity_message(exc: IntegrityError) -> str:
    detail = str(exc.orig).lower()
    if "foreign key" in detail:
        return "Invalid reference"
    if "unique" in detail or "duplicate" in detail:
        return "Resource already exists"
    return "Invalid data"


def classify_error(exc: Exception) -> Tuple[int, str]:
    """Maps any exception raised while serving a request to (status, message)."""
    if isinstance(exc, AppError):
        return exc.status_code, exc.message
    if isinstance(exc, RequestValidationError):
        return 400, _validation_message(exc)
    if isinstance(exc, IntegrityError):
        return 400, _integrity_message(exc)
    if isinstance(exc, jwt.ExpiredSignatureError):
        return 401, "Token expired"
    if isinstance(exc, jwt.PyJWTError):
        return 401, "Invalid token"
    if isinstance(exc, StarletteHTTPException):
        return exc.status_code, str(exc.detail)
    return 500, SERVER_ERROR_MESSAGE


def error_response(request: Request, exc: Exception) -> JSONResponse:
    status, message = classify_error(exc)
    if status >= 500:
        logging.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    else:
        logging.info(f"{request.method} {request.url.path} -> {status}: {message}")

    body = {"success": False, "message": message}
    if config.DEBUG:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status, content=body)


def register_error_handlers(app) -> None:
    for exc_class in (AppError, RequestValidationError, IntegrityError, jwt.PyJWTError,
                      StarletteHTTPException, Exception):
        app.add_exception_handler(exc_class, error_response)
