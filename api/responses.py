"""Uniform response envelope: {statusCode, data, message, success}."""
from __future__ import annotations

from typing import Any

from flask import jsonify


def api_response(data: Any = None, message: str = "Success", status_code: int = 200):
    payload = {
        "statusCode": status_code,
        "data": data,
        "message": message,
        "success": status_code < 400,
    }
    return jsonify(payload), status_code


def error_response(message: str, status_code: int, errors: list | None = None):
    payload = {
        "statusCode": status_code,
        "success": False,
        "message": message,
        "errors": list(errors or []),
        "data": None,
    }
    return jsonify(payload), status_code
