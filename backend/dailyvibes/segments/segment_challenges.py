from __future__ import annotations

from flask import Blueprint

from dailyvibes.errors import ValidationError
from dailyvibes.jobs.daily_challenge import run_daily_challenge
from dailyvibes.services import challenges
from dailyvibes.utils import clock
from dailyvibes.utils.request_auth import current_admin, current_user, json_body, str_field
from dailyvibes.utils.responses import ok

challenges_bp = Blueprint("challenges_bp", __name__, url_prefix="/api")


def _day_or_400(raw):
    day = clock.parse_day(raw)
    if day is None:
        raise ValidationError("date must be YYYY-MM-DD")
    return day


@challenges_bp.get("/challenge/today")
def today_challenge():
    current_user()
    selection = challenges.select_challenge(clock.vibe_today())
    return ok({"challenge": selection.to_dict()})


@challenges_bp.get("/challenges")
def list_challenges():
    current_user()
    return ok({"challenges": [c.to_dict() for c in challenges.list_catalogue()]})


@challenges_bp.post("/admin/challenges")
def add_challenge():
    current_admin()
    data = json_body()
    c = challenges.add_challenge(
        str_field(data, "icon"),
        str_field(data, "title"),
        str_field(data, "description"),
    )
    return ok({"challenge": c.to_dict()}, message="Challenge added", status=201)


@challenges_bp.post("/admin/challenges/override")
def set_override():
    admin = current_admin()
    data = json_body()
    day = _day_or_400(data.get("date"))
    if data.get("challengeId") is None:
        raise ValidationError("challengeId is required")
    row = challenges.set_override(day, data.get("challengeId"), created_by=int(admin.id))
    return ok({"override": row.to_dict()}, message="Override saved")


@challenges_bp.delete("/admin/challenges/override/<day>")
def clear_override(day: str):
    current_admin()
    removed = challenges.clear_override(_day_or_400(day))
    return ok({"removed": removed})


@challenges_bp.post("/admin/daily-challenge/run")
def run_daily_job():
    current_admin()
    data = json_body()
    day = _day_or_400(data["date"]) if data.get("date") else None
    return ok({"job": run_daily_challenge(today=day)})
