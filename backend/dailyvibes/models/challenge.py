from dailyvibes.extensions import db
from dailyvibes.utils.clock import utcnow


class Challenge(db.Model):
    __tablename__ = "challenges"

    id = db.Column(db.Integer, primary_key=True)
    icon = db.Column(db.String(16), nullable=False, default="")
    title = db.Column(db.String(160), nullable=False)
    description = db.Column(db.String(500), nullable=False, default="")
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": int(self.id),
            "icon": self.icon or "",
            "title": self.title,
            "description": self.description or "",
        }


class ChallengeOverride(db.Model):
    __tablename__ = "challenge_overrides"

    id = db.Column(db.Integer, primary_key=True)
    vibe_date = db.Column(db.Date, nullable=False, unique=True, index=True)
    challenge_id = db.Column(db.Integer, db.ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    challenge = db.relationship("Challenge")

    def to_dict(self):
        return {
            "date": self.vibe_date.isoformat() if self.vibe_date else None,
            "challengeId": int(self.challenge_id),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
