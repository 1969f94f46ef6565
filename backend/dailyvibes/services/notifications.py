"""Per-user notification inbox.

Appends always land in the database; live delivery to a registered device is
attempted afterwards and its outcome is never reported to the caller.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from dailyvibes.errors import Infrastructure
from dailyvibes.extensions import db
from dailyvibes.models import Notification
from dailyvibes.services import delivery
from dailyvibes.services.devices import get_registry

SYSTEM_ORIGIN = "system"

# Allowed ``extra`` keys per notification type.
PAYLOAD_FIELDS: Dict[str, Tuple[str, ...]] = {
    "new_photo": ("photo_id",),
    "like": ("photo_id",),
    "comment": ("photo_id", "text"),
    "friend_request": (),
    "daily_challenge": ("challenge_id", "date"),
}


def build_extra(type_: str, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    if type_ not in PAYLOAD_FIELDS:
        raise ValueError(f"unknown notification type: {type_}")
    extra = dict(extra or {})
    unknown = set(extra) - set(PAYLOAD_FIELDS[type_])
    if unknown:
        raise ValueError(f"unexpected payload keys for {type_}: {sorted(unknown)}")
    return extra


def _new_row(recipient_id: int, title: str, body: str, type_: str, origin: str,
             extra: Optional[Dict[str, Any]], dedupe_key: Optional[str]) -> Notification:
    return Notification(
        user_id=int(recipient_id),
        type=type_,
        title=(title or "")[:160],
        body=body or "",
        origin=(origin or SYSTEM_ORIGIN)[:64],
        extra=json.dumps(build_extra(type_, extra), default=str),
        dedupe_key=dedupe_key[:160] if dedupe_key else None,
        read=False,
    )


def _try_live(n: Notification) -> None:
    try:
        endpoint = get_registry().lookup(int(n.user_id))
    except Exception:
        current_app.logger.warning("device lookup failed for user %s", n.user_id, exc_info=True)
        return
    if endpoint is None:
        return
    delivery.dispatch(endpoint, n.title, n.body)


def _existing(dedupe_key: Optional[str]) -> Optional[Notification]:
    if not dedupe_key:
        return None
    return Notification.query.filter_by(dedupe_key=dedupe_key[:160]).first()


def append(
    recipient_id: int,
    title: str,
    body: str,
    type_: str,
    origin: str = SYSTEM_ORIGIN,
    extra: Optional[Dict[str, Any]] = None,
    dedupe_key: Optional[str] = None,
) -> Notification:
    """Store one notification and try a live push.

    With ``dedupe_key`` a repeated call returns the stored row untouched.
    """
    found = _existing(dedupe_key)
    if found is not None:
        return found

    n = _new_row(recipient_id, title, body, type_, origin, extra, dedupe_key)
    try:
        db.session.add(n)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        found = _existing(dedupe_key)
        if found is not None:
            return found
        raise Infrastructure("notification could not be stored")
    except SQLAlchemyError as e:
        db.session.rollback()
        raise Infrastructure(f"notification store unavailable: {e}")

    _try_live(n)
    return n


def fan_out(
    recipient_ids: Iterable[int],
    title: str,
    body: str,
    type_: str,
    origin: str = SYSTEM_ORIGIN,
    extra: Optional[Dict[str, Any]] = None,
    dedupe_prefix: Optional[str] = None,
) -> List[Notification]:
    """Append the same notification to many recipients in one commit."""
    rows: List[Notification] = []
    for rid in dict.fromkeys(int(r) for r in recipient_ids):
        key = f"{dedupe_prefix}:{rid}" if dedupe_prefix else None
        if _existing(key) is not None:
            continue
        rows.append(_new_row(rid, title, body, type_, origin, extra, key))
    if not rows:
        return []

    try:
        db.session.add_all(rows)
        db.session.commit()
    except IntegrityError:
        # A concurrent retry stored some of them already; fall back to one by one.
        db.session.rollback()
        return [
            append(int(r.user_id), title, body, type_, origin, extra, r.dedupe_key)
            for r in rows
        ]
    except SQLAlchemyError as e:
        db.session.rollback()
        raise Infrastructure(f"notification store unavailable: {e}")

    for n in rows:
        _try_live(n)
    return rows


def list_for(recipient_id: int, limit: Optional[int] = None) -> Tuple[List[Notification], int]:
    """Newest-first page plus the unread count within that page."""
    if limit is None:
        limit = int(current_app.config.get("NOTIFICATION_PAGE_SIZE") or 50)
    rows = (
        Notification.query.filter_by(user_id=int(recipient_id))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(int(limit))
        .all()
    )
    unread = sum(1 for n in rows if not n.read)
    return rows, unread


def mark_read(recipient_id: int, notification_id) -> bool:
    try:
        nid = int(notification_id)
    except (TypeError, ValueError):
        return False
    updated = (
        Notification.query.filter_by(id=nid, user_id=int(recipient_id))
        .update({"read": True}, synchronize_session=False)
    )
    db.session.commit()
    return bool(updated)


def clear(recipient_id: int) -> int:
    deleted = Notification.query.filter_by(user_id=int(recipient_id)).delete(synchronize_session=False)
    db.session.commit()
    return int(deleted or 0)
