import json

from dailyvibes.extensions import db
from dailyvibes.utils.clock import utcnow


class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    type = db.Column(db.String(32), nullable=False)  # new_photo | like | comment | friend_request | daily_challenge
    title = db.Column(db.String(160), nullable=False, default="")
    body = db.Column(db.Text, nullable=False, default="")
    origin = db.Column(db.String(64), nullable=False, default="system")

    extra = db.Column(db.Text, nullable=True)  # JSON string, shape keyed by type

    # Set for appends that must not be duplicated by a retry
    dedupe_key = db.Column(db.String(160), nullable=True, unique=True, index=True)

    read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def extra_dict(self):
        raw = (self.extra or "").strip()
        if not raw:
            return {}
        try:
            d = json.loads(raw)
        except ValueError:
            return {}
        return d if isinstance(d, dict) else {}

    def to_dict(self):
        return {
            "id": str(self.id),
            "type": self.type,
            "title": self.title or "",
            "body": self.body or "",
            "from": self.origin or "system",
            "extra": self.extra_dict(),
            "timestamp": self.created_at.isoformat() if self.created_at else None,
            "read": bool(self.read),
        }
