"""Translate manager results into JSON responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from flask import current_app, jsonify, request

from interview_access.results import Failure, FailureCode

FAILURE_STATUS = {
    FailureCode.APPLICATION_MISMATCH: 404,
    FailureCode.CODE_NOT_FOUND: 404,
    FailureCode.TOKEN_NOT_FOUND: 404,
    FailureCode.ALREADY_VERIFIED: 409,
    FailureCode.TOKEN_ALREADY_USED: 409,
    FailureCode.RESEND_TOO_SOON: 429,
}


def verification_service():
    return current_app.extensions["verification_service"]


def jsonable(value: Any) -> Any:
    """Convert datetimes to ISO-8601 strings, recursively."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(item) for item in value]
    return value


def success(message: str, data: Optional[Dict[str, Any]] = None, status: int = 200):
    return jsonify(success=True, message=message, data=jsonable(data or {})), status


def failure(result: Failure):
    return jsonify(result.to_dict()), FAILURE_STATUS.get(result.code, 400)


def bad_request(message: str):
    return jsonify(success=False, message=message), 400


def read_fields(source: Dict[str, Any], required: Iterable[str], optional: Iterable[str] = ()):
    """Return ``(fields, missing)`` with string values stripped."""
    fields: Dict[str, Any] = {}
    missing = []
    for name in required:
        value = source.get(name)
        if isinstance(value, str):
            value = value.strip()
        if value in (None, ""):
            missing.append(name)
        fields[name] = value
    for name in optional:
        value = source.get(name)
        fields[name] = value.strip() if isinstance(value, str) else value
    return fields, missing


def json_payload() -> Dict[str, Any]:
    return request.get_json(silent=True) or {}
