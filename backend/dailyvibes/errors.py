from __future__ import annotations

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from dailyvibes.extensions import db


class ApiError(Exception):
    """Base class for errors that map onto a JSON response."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationError(ApiError):
    status_code = 400
    default_message = "Invalid request"


class Unauthenticated(ApiError):
    status_code = 401
    default_message = "No token provided"


class Forbidden(ApiError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class QuotaExceeded(ApiError):
    status_code = 400
    default_message = "Daily photo limit reached"


class Conflict(ApiError):
    status_code = 400
    default_message = "Conflict"


class Infrastructure(ApiError):
    status_code = 500
    default_message = "Server error"


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(e: ApiError):
        if isinstance(e, Infrastructure):
            app.logger.error("infrastructure failure: %s", e.message)
            return jsonify({"success": False, "message": Infrastructure.default_message}), 500
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def _db_error(e: SQLAlchemyError):
        db.session.rollback()
        app.logger.exception("database error")
        return jsonify({"success": False, "message": "Server error"}), 500

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({"success": False, "message": e.description or e.name}), e.code or 500

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        db.session.rollback()
        app.logger.exception("unhandled error")
        return jsonify({"success": False, "message": "Server error"}), 500
