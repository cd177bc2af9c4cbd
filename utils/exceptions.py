"""
API error kinds.

Every controller operation either returns normally or raises exactly one of
these. The Flask error handlers in api/errors.py turn them into the error
envelope; nothing else about the failure leaks to the client.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base error carrying an HTTP status code and a client-safe message."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.message = message or self.default_message
        self.errors = list(errors or [])
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "statusCode": self.status_code,
            "success": False,
            "message": self.message,
            "errors": self.errors,
            "data": None,
        }


class BadRequest(ApiError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized request"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        super().__init__(message, errors)
        logger.debug("Authentication error: %s", self.message)


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Resource conflict"


class InternalError(ApiError):
    status_code = 500
    default_message = "Something went wrong"
