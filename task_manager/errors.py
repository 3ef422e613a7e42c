"""
Error taxonomy and the application-wide error handlers.

Views signal failures by raising one of the ``ApiError`` subclasses
below.  ``register_error_handlers`` maps those, database integrity
errors, Werkzeug HTTP errors and anything unexpected onto the JSON
envelope, so no failure reaches a client as an HTML page or a raw
traceback.
"""

from __future__ import annotations

import logging

from flask import Flask, Response, current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from . import db
from .responses import error_response

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    Base class for errors that map directly onto an HTTP response.

    Attributes:
        status_code: HTTP status returned to the client.
        message: Human-readable summary.
        errors: Optional per-field details, each ``{"field", "message"}``.
    """

    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(ApiError):
    status_code = 401
    default_message = "Authentication required"


class PermissionDeniedError(ApiError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(ApiError):
    status_code = 409
    default_message = "Resource already exists"


class RateLimitError(ApiError):
    status_code = 429
    default_message = "Too many requests. Please try again later."


def register_error_handlers(app: Flask) -> None:
    """Attach the JSON error handlers to *app*."""

    @app.errorhandler(ApiError)
    def handle_api_error(error: ApiError) -> tuple[Response, int]:
        return error_response(error.message, error.status_code, error.errors)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error: IntegrityError) -> tuple[Response, int]:
        db.session.rollback()
        logger.warning("Integrity error: %s", error.orig)
        return error_response(ConflictError.default_message, 409)

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException) -> tuple[Response, int]:
        return error_response(error.description or error.name, error.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> tuple[Response, int]:
        logger.exception("Unhandled error while processing request")
        db.session.rollback()
        if current_app.config.get("EXPOSE_ERROR_DETAILS"):
            message = str(error) or ApiError.default_message
        else:
            message = ApiError.default_message
        return error_response(message, 500)
