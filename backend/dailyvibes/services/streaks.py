"""Consecutive-day posting streaks and the achievements they unlock.

Only call :func:`record_first_post_of_day` when a user's photo count for the
day goes from 0 to 1. The function is still idempotent for a given day.
Changes are flushed, not committed; the caller owns the transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List

from dailyvibes.errors import NotFound
from dailyvibes.extensions import db
from dailyvibes.models import User, UserAchievement

STREAK_ACHIEVEMENTS = (
    (7, "streak_7"),
    (30, "streak_30"),
)

_CAS_ATTEMPTS = 3


@dataclass
class StreakResult:
    count: int
    new_achievements: List[str] = field(default_factory=list)
    changed: bool = False

    def to_dict(self):
        return {
            "count": int(self.count),
            "newAchievements": list(self.new_achievements),
        }


def next_streak(last_post_date, current: int, day: date) -> int:
    if last_post_date is not None and last_post_date == day - timedelta(days=1):
        return int(current or 0) + 1
    return 1


def _unlock(user_id: int, count: int) -> List[str]:
    have = {
        tag for (tag,) in db.session.query(UserAchievement.tag).filter_by(user_id=int(user_id))
    }
    unlocked = []
    for threshold, tag in STREAK_ACHIEVEMENTS:
        if count >= threshold and tag not in have:
            db.session.add(UserAchievement(user_id=int(user_id), tag=tag))
            unlocked.append(tag)
    if unlocked:
        db.session.flush()
    return unlocked


def record_first_post_of_day(user_id: int, day: date) -> StreakResult:
    for _ in range(_CAS_ATTEMPTS):
        user = db.session.get(User, int(user_id))
        if user is None:
            raise NotFound("User not found")

        prev = user.last_post_date
        current = int(user.streak_count or 0)
        if prev is not None and prev >= day:
            # Same day re-entry, or a day older than the last recorded post.
            return StreakResult(count=current)

        new_count = next_streak(prev, current, day)

        q = User.query.filter(User.id == int(user_id))
        if prev is None:
            q = q.filter(User.last_post_date.is_(None))
        else:
            q = q.filter(User.last_post_date == prev)
        swapped = q.update(
            {"streak_count": new_count, "last_post_date": day},
            synchronize_session=False,
        )
        db.session.expire(user)
        if swapped:
            return StreakResult(count=new_count, new_achievements=_unlock(int(user_id), new_count), changed=True)

    # Lost every race; whoever won has already recorded the day.
    user = db.session.get(User, int(user_id))
    return StreakResult(count=int(user.streak_count or 0) if user else 0)


def streak_status(user: User, today: date) -> dict:
    """Whether the stored streak is still alive as of ``today``."""
    last = user.last_post_date
    alive = last is not None and last >= today - timedelta(days=1)
    return {
        "streak": int(user.streak_count or 0),
        "active": bool(alive),
        "postedToday": last == today,
    }
