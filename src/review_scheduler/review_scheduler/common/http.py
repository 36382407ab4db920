"""JSON error responses and request helpers shared by the controllers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PreconditionFailedError,
    ValidationError,
)
from .datetime_utils import parse_iso_datetime

logger = logging.getLogger(__name__)

_STATUS = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    PreconditionFailedError: 412,
}


def status_for(exc: DomainError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS:
            return _STATUS[cls]
    return 400


def error_body(kind: str, message: str, **extra: Any) -> dict:
    body = {"success": False, "error": kind, "message": message}
    body.update(extra)
    return body


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(e: DomainError):
        code = status_for(e)
        extra = {"entity": e.entity} if isinstance(e, NotFoundError) else {}
        if code >= 409:
            logger.warning("%s %s rejected: %s", request.method, request.path, e)
        return jsonify(error_body(e.kind, str(e), **extra)), code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify(error_body("http_error", e.description or e.name)), e.code or 500

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(error_body("internal_error", "Internal server error")), 500


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, as placed into the Flask session by the login flow."""

    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def current_principal() -> Principal:
    user_id = session.get("user_id")
    role = session.get("role")
    if not user_id or not role:
        raise AuthorizationError("Authentication required")
    try:
        return Principal(user_id=str(user_id), role=Role(str(role).upper()))
    except ValueError:
        raise AuthorizationError("Unknown role")


def roles_required(*roles: Role):
    allowed = set(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            principal = current_principal()
            if principal.role not in allowed:
                raise AuthorizationError("Access denied. Insufficient permissions.")
            return view(*args, **kwargs)

        return wrapper

    return decorator


admin_required = roles_required(Role.ADMIN)


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def body_datetime(data: dict, name: str) -> Optional[datetime]:
    try:
        return parse_iso_datetime(data.get(name))
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an ISO-8601 timestamp")


def body_float(data: dict, name: str) -> Optional[float]:
    value = data.get(name)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number")


def body_int(data: dict, name: str) -> Optional[int]:
    value = body_float(data, name)
    return int(value) if value is not None else None


def body_ids(data: dict, name: str) -> list[str]:
    value = data.get(name) or []
    if not isinstance(value, list):
        raise ValidationError(f"{name} must be a list")
    return [str(v) for v in value]
