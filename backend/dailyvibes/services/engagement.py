"""Photo actions and their side effects.

upload -> quota check -> challenge -> photo row -> streak (first photo of the
day only) -> ``new_photo`` to every friend. Likes and comments notify the
photo owner unless the owner is the actor.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from dailyvibes.errors import Forbidden, NotFound, QuotaExceeded, ValidationError
from dailyvibes.extensions import db
from dailyvibes.models import Photo, PhotoComment, PhotoLike, User
from dailyvibes.services import notifications
from dailyvibes.services.challenges import select_challenge
from dailyvibes.services.friends import friend_ids
from dailyvibes.services.streaks import StreakResult, record_first_post_of_day
from dailyvibes.utils import clock

COMMENT_MAX_LENGTH = 500
PREVIEW_LENGTH = 50


@dataclass
class UploadResult:
    photo: Photo
    streak: Optional[StreakResult]
    notified: int

    def to_dict(self):
        return {
            "photo": self.photo.to_dict(),
            "streak": self.streak.to_dict() if self.streak else None,
            "notifiedFriends": int(self.notified),
        }


@dataclass
class LikeResult:
    liked: bool
    like_count: int


def daily_limit() -> int:
    return int(current_app.config.get("MAX_PHOTOS_PER_DAY") or 3)


def _used_slots(user_id: int, day: date) -> set:
    return {
        int(slot)
        for (slot,) in db.session.query(Photo.slot).filter_by(user_id=int(user_id), vibe_date=day)
    }


def count_photos(user_id: int, day: date) -> int:
    return Photo.query.filter_by(user_id=int(user_id), vibe_date=day).count()


def upload_photo(user: User, image_data: str, caption: str = "", today: Optional[date] = None) -> UploadResult:
    if not image_data:
        raise ValidationError("Image is required")
    day = today or clock.vibe_today()
    limit = daily_limit()
    user_id = int(user.id)
    username = user.username

    photo = None
    pre_count = 0
    # Second pass only runs if a concurrent upload took our slot.
    for _ in range(2):
        used = _used_slots(user_id, day)
        pre_count = len(used)
        if pre_count >= limit:
            raise QuotaExceeded(f"You can post at most {limit} photos per day")

        selection = select_challenge(day)
        slot = min(s for s in range(1, limit + 1) if s not in used)
        candidate = Photo(
            photo_key=Photo.make_key(username, day, slot),
            user_id=user_id,
            vibe_date=day,
            slot=slot,
            image_data=image_data,
            caption=(caption or "").strip()[:500],
            challenge_title=selection.challenge.title,
        )
        db.session.add(candidate)
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            continue
        photo = candidate
        break

    if photo is None:
        raise QuotaExceeded(f"You can post at most {limit} photos per day")

    streak = record_first_post_of_day(user_id, day) if pre_count == 0 else None
    db.session.commit()

    sent = notifications.fan_out(
        friend_ids(user_id),
        "📸 New photo!",
        f"{username} uploaded a new photo!",
        "new_photo",
        origin=username,
        extra={"photo_id": photo.photo_key},
        dedupe_prefix=f"new_photo:{photo.photo_key}:{int(photo.id)}",
    )
    return UploadResult(photo=photo, streak=streak, notified=len(sent))


def find_photo(photo_id: Optional[str] = None, owner_username: Optional[str] = None,
               photo_date=None, slot=1) -> Photo:
    """Resolve a photo by key, or by owner + date (+ slot)."""
    if photo_id:
        photo = Photo.query.filter_by(photo_key=str(photo_id)).first()
    else:
        day = clock.parse_day(photo_date)
        if not owner_username or day is None:
            raise ValidationError("photoId or photoUsername and photoDate are required")
        try:
            slot = int(slot or 1)
        except (TypeError, ValueError):
            raise ValidationError("slot must be an integer")
        photo = (
            Photo.query.join(User, Photo.user_id == User.id)
            .filter(User.username == owner_username, Photo.vibe_date == day, Photo.slot == slot)
            .first()
        )
    if photo is None:
        raise NotFound("Photo not found")
    return photo


def toggle_like(user: User, photo: Photo) -> LikeResult:
    removed = (
        PhotoLike.query.filter_by(photo_id=int(photo.id), user_id=int(user.id))
        .delete(synchronize_session=False)
    )
    if removed:
        db.session.commit()
        return LikeResult(liked=False, like_count=PhotoLike.query.filter_by(photo_id=int(photo.id)).count())

    db.session.add(PhotoLike(photo_id=int(photo.id), user_id=int(user.id)))
    try:
        db.session.commit()
    except IntegrityError:
        # A concurrent request already liked it and sent the notification.
        db.session.rollback()
        return LikeResult(liked=True, like_count=PhotoLike.query.filter_by(photo_id=int(photo.id)).count())

    if int(photo.user_id) != int(user.id):
        notifications.append(
            int(photo.user_id),
            "❤️ New like!",
            f"{user.username} liked your photo!",
            "like",
            origin=user.username,
            extra={"photo_id": photo.photo_key},
        )
    return LikeResult(liked=True, like_count=PhotoLike.query.filter_by(photo_id=int(photo.id)).count())


def comment_preview(username: str, text: str) -> str:
    suffix = "..." if len(text) > PREVIEW_LENGTH else ""
    return f"{username}: {text[:PREVIEW_LENGTH]}{suffix}"


def add_comment(user: User, photo: Photo, text: str) -> PhotoComment:
    text = (text or "").strip()
    if not text:
        raise ValidationError("Comment must not be empty")
    if len(text) > COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment must be at most {COMMENT_MAX_LENGTH} characters")

    comment = PhotoComment(photo_id=int(photo.id), user_id=int(user.id), text=text)
    db.session.add(comment)
    db.session.commit()

    if int(photo.user_id) != int(user.id):
        notifications.append(
            int(photo.user_id),
            "💬 New comment!",
            comment_preview(user.username, text),
            "comment",
            origin=user.username,
            extra={"photo_id": photo.photo_key, "text": text},
        )
    return comment


def delete_photo(user: User, photo_id: str) -> None:
    photo = Photo.query.filter_by(photo_key=str(photo_id)).first()
    if photo is None:
        raise NotFound("Photo not found")
    if int(photo.user_id) != int(user.id):
        raise Forbidden("You can only delete your own photos")
    db.session.delete(photo)
    db.session.commit()


def photos_of(user_id: int, day: date) -> List[Photo]:
    return (
        Photo.query.filter_by(user_id=int(user_id), vibe_date=day)
        .order_by(Photo.slot.asc())
        .all()
    )
