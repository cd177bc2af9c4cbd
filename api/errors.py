from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from api.responses import error_response
from utils.exceptions import ApiError

logger = logging.getLogger(__name__)


def _flatten_messages(messages) -> list:
    """marshmallow messages ({field: [msg, ...]}) as a flat list of {field, message}."""
    if isinstance(messages, dict):
        out = []
        for field, value in messages.items():
            for message in value if isinstance(value, list) else [value]:
                out.append({"field": field, "message": message})
        return out
    return [{"message": m} for m in (messages if isinstance(messages, list) else [messages])]


def register_error_handlers(app):
    # Controller errors carry their own status and message
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.status_code >= 500:
            logger.error("%s: %s", err.__class__.__name__, err.message, exc_info=err)
        return jsonify(err.to_dict()), err.status_code

    # Marshmallow validation errors map to 400
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        if current_app and current_app.debug:
            logger.debug("Validation failed: %s", err.messages)
        return error_response("Invalid input", 400, _flatten_messages(err.messages))

    # Integrity errors: a unique index beat the controller's own check (concurrent writes)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err)).lower()
        logger.warning("Integrity error: %s", message)
        if "unique" in message or "duplicate" in message:
            return error_response("User with email or username already exists", 409)
        return error_response("Integrity error", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.description or err.name, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        return error_response("An unexpected error occurred", 500)
