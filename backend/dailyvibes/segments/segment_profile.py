from __future__ import annotations

from flask import Blueprint

from dailyvibes.services import accounts
from dailyvibes.services.streaks import streak_status
from dailyvibes.utils import clock
from dailyvibes.utils.request_auth import current_user, json_body, str_field
from dailyvibes.utils.responses import ok

profile_bp = Blueprint("profile_bp", __name__, url_prefix="/api/profile")


@profile_bp.get("")
def get_profile():
    u = current_user()
    return ok({"user": u.to_dict(), "streak": streak_status(u, clock.vibe_today())})


@profile_bp.post("/image")
def update_image():
    u = current_user()
    data = json_body()
    accounts.set_profile_image(u, str_field(data, "profileImage", None))
    return ok({"user": u.to_dict()}, message="Profile image updated")


@profile_bp.post("/email")
def update_email():
    u = current_user()
    data = json_body()
    accounts.change_email(u, str_field(data, "newEmail"), str_field(data, "password"))
    return ok({"user": u.to_dict()}, message="Email updated")


@profile_bp.post("/password")
def update_password():
    u = current_user()
    data = json_body()
    accounts.change_password(u, str_field(data, "oldPassword"), str_field(data, "newPassword"))
    return ok(message="Password updated")


@profile_bp.post("/memories-visibility")
def update_memories_visibility():
    u = current_user()
    data = json_body()
    accounts.set_memories_visibility(u, data.get("memoriesPublic"))
    return ok({"user": u.to_dict()}, message="Memories visibility updated")
