from __future__ import annotations

from datetime import date
from typing import List, Optional

from dailyvibes.errors import Forbidden, NotFound, ValidationError
from dailyvibes.models import Friendship, Photo, User
from dailyvibes.services.friends import are_friends


def friends_feed(user: User, day: date) -> List[Photo]:
    """Friends' photos for ``day``."""
    return (
        Photo.query.join(Friendship, Friendship.friend_id == Photo.user_id)
        .filter(Friendship.user_id == int(user.id), Photo.vibe_date == day)
        .order_by(Photo.created_at.desc(), Photo.id.desc())
        .all()
    )


def own_memories(user: User, today: date) -> List[Photo]:
    """Own photos before today, newest day first."""
    return (
        Photo.query.filter(Photo.user_id == int(user.id), Photo.vibe_date < today)
        .order_by(Photo.vibe_date.desc(), Photo.slot.asc())
        .all()
    )


def _owner_visible_to(viewer: User, owner_username: str) -> User:
    owner = User.query.filter_by(username=(owner_username or "").strip()).first()
    if owner is None:
        raise NotFound("User not found")
    if int(owner.id) == int(viewer.id):
        return owner
    if not owner.memories_public or not are_friends(viewer.id, owner.id):
        raise Forbidden("These memories are private")
    return owner


def calendar(viewer: User, owner_username: str, year: Optional[int] = None, month: Optional[int] = None) -> dict:
    owner = _owner_visible_to(viewer, owner_username)
    q = Photo.query.filter(Photo.user_id == int(owner.id))
    if year is not None:
        # date(year + 1, 1, 1) bounds the range, so the last valid year is excluded.
        if not date.min.year <= int(year) < date.max.year:
            raise ValidationError(f"year must be between {date.min.year} and {date.max.year - 1}")
        if month is not None:
            if not 1 <= int(month) <= 12:
                raise ValidationError("month must be between 1 and 12")
            start = date(int(year), int(month), 1)
            end = date(int(year) + 1, 1, 1) if int(month) == 12 else date(int(year), int(month) + 1, 1)
        else:
            start, end = date(int(year), 1, 1), date(int(year) + 1, 1, 1)
        q = q.filter(Photo.vibe_date >= start, Photo.vibe_date < end)

    counts: dict = {}
    for p in q.order_by(Photo.vibe_date.asc()).all():
        key = p.vibe_date.isoformat()
        counts[key] = counts.get(key, 0) + 1
    return {
        "username": owner.username,
        "days": [{"date": d, "count": c} for d, c in counts.items()],
    }


def photos_on(viewer: User, owner_username: str, day: date) -> List[Photo]:
    owner = _owner_visible_to(viewer, owner_username)
    return (
        Photo.query.filter_by(user_id=int(owner.id), vibe_date=day)
        .order_by(Photo.slot.asc())
        .all()
    )
