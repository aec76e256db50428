"""Error taxonomy shared by services, dependencies and routes.

Every error carries the HTTP status it maps to and a human-readable message.
The handlers registered by :func:`register_exception_handlers` render them as
``{"message": ...}`` so clients never see stack traces.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(StorefrontError):
    status_code = 422
    message = "Validation failed"


class Conflict(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Email already in use"


class InvalidCredentials(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid credentials"


class NotFound(StorefrontError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class InvalidOrExpiredToken(StorefrontError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid or expired token"


class Unauthorized(StorefrontError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authorized"


class Forbidden(StorefrontError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "Access denied"


class DeliveryFailed(StorefrontError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Email could not be sent"


class Internal(StorefrontError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Server error"


async def _storefront_error_handler(_: Request, exc: StorefrontError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    logger.warning("Validation failed for %s %s: %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=ValidationError.status_code,
        content={"message": ValidationError.message, "errors": errors},
    )


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error during %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=Internal.status_code, content={"message": Internal.message})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error during %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=Internal.status_code, content={"message": Internal.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, _storefront_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
