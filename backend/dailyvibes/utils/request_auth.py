from __future__ import annotations

from flask import request

from dailyvibes.errors import Forbidden, Unauthenticated, ValidationError
from dailyvibes.extensions import db
from dailyvibes.models import User
from dailyvibes.utils.jwt_utils import decode_token, get_bearer_token


def authenticate(token: str | None) -> User:
    """Resolve a bearer token to a user.

    Missing token -> Unauthenticated (401); anything unusable -> Forbidden (403).
    """
    if not token:
        raise Unauthenticated("No token provided")
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        raise Forbidden("Invalid token")
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Forbidden("Invalid token")
    user = db.session.get(User, user_id)
    if not user:
        raise Forbidden("Invalid token")
    return user


def current_user() -> User:
    return authenticate(get_bearer_token(request.headers.get("Authorization", "")))


def current_admin() -> User:
    user = current_user()
    if not user.is_admin:
        raise Forbidden("Admin privileges required")
    return user


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def str_field(data: dict, key: str, default: str | None = "") -> str | None:
    """String value of ``data[key]``; missing or null gives ``default``."""
    value = data.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value
