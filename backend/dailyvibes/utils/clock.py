"""Time helpers.

All stored timestamps are naive UTC. The "vibe day" a photo belongs to is the
calendar date in the deployment's reference timezone (``VIBE_TIMEZONE``).
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from flask import current_app


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def reference_tz() -> ZoneInfo:
    return ZoneInfo(current_app.config.get("VIBE_TIMEZONE") or "UTC")


def vibe_today() -> date:
    return datetime.now(reference_tz()).date()


def day_window(day: date) -> tuple[datetime, datetime]:
    """Full 24h span of ``day`` in the reference timezone, as aware datetimes."""
    tz = reference_tz()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


def parse_day(raw) -> date | None:
    if isinstance(raw, date):
        return raw
    try:
        return date.fromisoformat(str(raw or "").strip())
    except ValueError:
        return None


def iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None
