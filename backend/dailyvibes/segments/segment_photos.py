from __future__ import annotations

from flask import Blueprint, request

from dailyvibes.errors import ValidationError
from dailyvibes.services import engagement, memories
from dailyvibes.utils import clock
from dailyvibes.utils.request_auth import current_user, json_body, str_field
from dailyvibes.utils.responses import ok

photos_bp = Blueprint("photos_bp", __name__, url_prefix="/api")


def _photo_from(data: dict):
    return engagement.find_photo(
        photo_id=str_field(data, "photoId", None),
        owner_username=str_field(data, "photoUsername", None),
        photo_date=str_field(data, "photoDate", None),
        slot=data.get("slot") or 1,
    )


@photos_bp.post("/photos/upload")
def upload():
    u = current_user()
    data = json_body()
    result = engagement.upload_photo(u, str_field(data, "imageData"), str_field(data, "caption"))
    return ok(result.to_dict(), message="Photo uploaded", status=201)


@photos_bp.get("/photos/today")
def friends_today():
    u = current_user()
    photos = memories.friends_feed(u, clock.vibe_today())
    return ok({"photos": [p.to_dict() for p in photos]})


@photos_bp.get("/photos/me/today")
def my_today():
    u = current_user()
    today = clock.vibe_today()
    photos = engagement.photos_of(u.id, today)
    limit = engagement.daily_limit()
    return ok({
        "photos": [p.to_dict() for p in photos],
        "remaining": max(limit - len(photos), 0),
    })


@photos_bp.get("/photos/memories")
def my_memories():
    u = current_user()
    photos = memories.own_memories(u, clock.vibe_today())
    return ok({"photos": [p.to_dict() for p in photos]})


@photos_bp.post("/photos/like")
def like():
    u = current_user()
    photo = _photo_from(json_body())
    result = engagement.toggle_like(u, photo)
    return ok({"liked": result.liked, "likeCount": result.like_count}, message="Like updated")


@photos_bp.post("/photos/comment")
def comment():
    u = current_user()
    data = json_body()
    text = str_field(data, "text")
    if not text.strip():
        raise ValidationError("Comment must not be empty")
    photo = _photo_from(data)
    c = engagement.add_comment(u, photo, text)
    return ok({"comment": c.to_dict()}, message="Comment added", status=201)


@photos_bp.delete("/photos/<photo_id>")
def delete(photo_id: str):
    u = current_user()
    engagement.delete_photo(u, photo_id)
    return ok(message="Photo deleted")


@photos_bp.get("/memories/<username>/calendar")
def memory_calendar(username: str):
    u = current_user()
    year = request.args.get("year", type=int)
    month = request.args.get("month", type=int)
    if month is not None and year is None:
        raise ValidationError("year is required when month is given")
    return ok(memories.calendar(u, username, year=year, month=month))


@photos_bp.get("/memories/<username>/<day>")
def memory_day(username: str, day: str):
    u = current_user()
    parsed = clock.parse_day(day)
    if parsed is None:
        raise ValidationError("date must be YYYY-MM-DD")
    photos = memories.photos_on(u, username, parsed)
    return ok({"date": parsed.isoformat(), "photos": [p.to_dict() for p in photos]})
