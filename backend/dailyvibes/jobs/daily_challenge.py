from __future__ import annotations

from datetime import date
from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from dailyvibes.errors import Infrastructure
from dailyvibes.extensions import db
from dailyvibes.models import Notification, User
from dailyvibes.services import notifications
from dailyvibes.services.challenges import select_challenge
from dailyvibes.utils import clock


def run_daily_challenge(*, today: Optional[date] = None, batch_size: int = 500) -> dict:
    """Announce the day's challenge to every user.

    Each append carries a per-day dedupe key, so re-running the job for the
    same day stores nothing new. A failure for one user is logged and the
    batch moves on.
    """
    day = today or clock.vibe_today()
    selection = select_challenge(day)
    ch = selection.challenge
    title = "📸 VibeTime!"
    body = f"New challenge: {ch.icon} {ch.title}".replace("  ", " ")

    processed = 0
    notified = 0
    skipped = 0
    errors = 0

    last_id = 0
    while True:
        users = (
            User.query.filter(User.id > last_id)
            .order_by(User.id.asc())
            .limit(int(batch_size))
            .all()
        )
        if not users:
            break
        for u in users:
            last_id = int(u.id)
            processed += 1
            key = f"daily_challenge:{day.isoformat()}:{int(u.id)}"
            try:
                before = Notification.query.filter_by(dedupe_key=key).first()
                if before is not None:
                    skipped += 1
                    continue
                notifications.append(
                    int(u.id),
                    title,
                    body,
                    "daily_challenge",
                    extra={"challenge_id": int(ch.id), "date": day.isoformat()},
                    dedupe_key=key,
                )
                notified += 1
            except (Infrastructure, SQLAlchemyError) as e:
                db.session.rollback()
                errors += 1
                current_app.logger.warning("daily challenge notification failed for user %s: %s", last_id, e)

    result = {
        "ok": True,
        "date": day.isoformat(),
        "challenge_id": int(ch.id),
        "processed": processed,
        "notified": notified,
        "skipped": skipped,
        "errors": errors,
        "ts": clock.utcnow().isoformat(),
    }
    current_app.logger.info("daily challenge job: %s", result)
    return result
