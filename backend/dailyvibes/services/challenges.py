"""Daily challenge rotation.

The challenge for a date is ``catalogue[day_of_year % len(catalogue)]`` with
the catalogue ordered by id and Jan 1 counted as day 0. An admin override
pinned to a date replaces that choice for that date only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from flask import current_app

from dailyvibes.errors import NotFound, ValidationError
from dailyvibes.extensions import db
from dailyvibes.models import Challenge, ChallengeOverride
from dailyvibes.utils import clock

DEFAULT_CHALLENGES = (
    ("😊", "Smile", "Show your best smile!"),
    ("✌️", "Peace", "Throw up a peace sign!"),
    ("💼", "Workspace", "Show your desk without tidying up"),
    ("🌅", "Morning view", "The first thing you see after waking up"),
    ("🍿", "Snack time", "Your current snack"),
    ("🪟", "Window view", "A photo out of your window"),
    ("👟", "Shoes", "The shoes you are wearing right now"),
    ("🎧", "Music", "What are you listening to?"),
    ("☕", "Drink", "Your current drink"),
    ("📱", "Phone", "Your home screen"),
)


@dataclass(frozen=True)
class ChallengeSelection:
    challenge: Challenge
    date: date
    start_time: datetime
    end_time: datetime
    overridden: bool = False

    def to_dict(self) -> dict:
        d = self.challenge.to_dict()
        d.update({
            "date": self.date.isoformat(),
            # Informational only; uploads are not gated on this window.
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "overridden": self.overridden,
        })
        return d


def seed_default_challenges() -> int:
    """Insert the default catalogue when it is empty. Returns rows inserted."""
    if Challenge.query.first() is not None:
        return 0
    # Ids come from the table sequence; flushing row by row keeps them in catalogue order.
    for icon, title, description in DEFAULT_CHALLENGES:
        db.session.add(Challenge(icon=icon, title=title, description=description))
        db.session.flush()
    db.session.commit()
    current_app.logger.info("seeded %d default challenges", len(DEFAULT_CHALLENGES))
    return len(DEFAULT_CHALLENGES)


def list_catalogue() -> List[Challenge]:
    return Challenge.query.order_by(Challenge.id.asc()).all()


def day_of_year(day: date) -> int:
    return (day - date(day.year, 1, 1)).days


def select_challenge(day: date) -> ChallengeSelection:
    start, end = clock.day_window(day)

    override = ChallengeOverride.query.filter_by(vibe_date=day).first()
    if override is not None and override.challenge is not None:
        return ChallengeSelection(override.challenge, day, start, end, overridden=True)

    catalogue = list_catalogue()
    if not catalogue:
        raise NotFound("No challenges available")
    chosen = catalogue[day_of_year(day) % len(catalogue)]
    return ChallengeSelection(chosen, day, start, end)


def add_challenge(icon: str, title: str, description: str = "") -> Challenge:
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required")
    c = Challenge(icon=(icon or "").strip()[:16], title=title[:160], description=(description or "").strip()[:500])
    db.session.add(c)
    db.session.commit()
    return c


def set_override(day: date, challenge_id, created_by: Optional[int] = None) -> ChallengeOverride:
    try:
        cid = int(challenge_id)
    except (TypeError, ValueError):
        raise ValidationError("challengeId must be an integer")
    if db.session.get(Challenge, cid) is None:
        raise NotFound("Challenge not found")

    row = ChallengeOverride.query.filter_by(vibe_date=day).first()
    if row is None:
        row = ChallengeOverride(vibe_date=day)
        db.session.add(row)
    row.challenge_id = cid
    row.created_by = created_by
    row.created_at = clock.utcnow()
    db.session.commit()
    return row


def clear_override(day: date) -> bool:
    deleted = ChallengeOverride.query.filter_by(vibe_date=day).delete(synchronize_session=False)
    db.session.commit()
    return bool(deleted)
