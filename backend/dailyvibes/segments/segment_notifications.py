from __future__ import annotations

from flask import Blueprint, request

from dailyvibes.errors import ValidationError
from dailyvibes.services import notifications
from dailyvibes.services.devices import get_registry
from dailyvibes.utils.request_auth import current_user, json_body, str_field
from dailyvibes.utils.responses import ok

notifications_bp = Blueprint("notifications_bp", __name__, url_prefix="/api/notifications")


@notifications_bp.post("/register")
def register_device():
    u = current_user()
    data = json_body()
    token = str_field(data, "deviceToken").strip()
    if not token:
        raise ValidationError("deviceToken is required")
    endpoint = get_registry().register(int(u.id), token, str_field(data, "platform").strip())
    return ok(
        {"expiresAt": endpoint.expires_at.isoformat() if endpoint.expires_at else None},
        message="Device token registered",
    )


@notifications_bp.get("")
def list_notifications():
    u = current_user()
    limit = request.args.get("limit", type=int)
    if limit is not None and limit <= 0:
        raise ValidationError("limit must be positive")
    if limit is not None:
        limit = min(limit, 200)
    rows, unread = notifications.list_for(int(u.id), limit=limit)
    items = [n.to_dict() for n in rows]
    return ok({"notifications": items, "unreadCount": unread}, notifications=items, unreadCount=unread)


@notifications_bp.post("/<notification_id>/read")
def mark_read(notification_id: str):
    u = current_user()
    notifications.mark_read(int(u.id), notification_id)
    return ok()


@notifications_bp.post("/read")
def clear_all():
    u = current_user()
    removed = notifications.clear(int(u.id))
    return ok({"removed": removed}, message="Notifications cleared")
