from __future__ import annotations

from flask import Blueprint

from dailyvibes.services import friends
from dailyvibes.utils.request_auth import current_user, json_body, str_field
from dailyvibes.utils.responses import ok

friends_bp = Blueprint("friends_bp", __name__, url_prefix="/api/friends")


@friends_bp.get("")
def list_friends():
    u = current_user()
    return ok({"friends": [f.to_public_dict() for f in friends.list_friends(u)]})


@friends_bp.get("/requests")
def list_requests():
    u = current_user()
    rows = friends.incoming_requests(u)
    return ok({
        "requests": [
            {
                "username": r.sender.username if r.sender else None,
                "createdAt": r.created_at.isoformat() if r.created_at else None,
            }
            for r in rows
        ]
    })


@friends_bp.post("/add")
def add_friend():
    u = current_user()
    friends.send_request(u, str_field(json_body(), "friendUsername"))
    return ok(message="Friend request sent")


@friends_bp.post("/accept")
def accept_friend():
    u = current_user()
    friends.accept_request(u, str_field(json_body(), "friendUsername"))
    return ok(message="Friend request accepted")


@friends_bp.post("/remove")
def remove_friend():
    u = current_user()
    friends.remove_friend(u, str_field(json_body(), "friendUsername"))
    return ok(message="Friend removed")
