from werkzeug.security import check_password_hash, generate_password_hash

from dailyvibes.extensions import db
from dailyvibes.utils.clock import utcnow


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(64), unique=True, index=True, nullable=False)
    email = db.Column(db.String(255), unique=True, index=True, nullable=False)

    password_hash = db.Column(db.String(255), nullable=False)

    # Opaque blob reference (usually a data URL sent by the app)
    profile_image = db.Column(db.Text, nullable=True)

    role = db.Column(db.String(32), nullable=False, default="user")

    streak_count = db.Column(db.Integer, nullable=False, default=0)
    last_post_date = db.Column(db.Date, nullable=True)

    memories_public = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    achievements = db.relationship(
        "UserAchievement",
        order_by="UserAchievement.unlocked_at",
        cascade="all, delete-orphan",
        lazy="select",
    )

    def set_password(self, raw_password: str) -> None:
        self.password_hash = generate_password_hash(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password_hash(self.password_hash, raw_password)

    @property
    def is_admin(self) -> bool:
        return (self.role or "").strip().lower() == "admin"

    def achievement_tags(self) -> list:
        return [a.tag for a in self.achievements]

    def to_public_dict(self) -> dict:
        return {
            "username": self.username,
            "profileImage": self.profile_image or None,
        }

    def to_dict(self) -> dict:
        return {
            "username": self.username,
            "email": self.email,
            "profileImage": self.profile_image or None,
            "role": self.role or "user",
            "streak": int(self.streak_count or 0),
            "lastPostDate": self.last_post_date.isoformat() if self.last_post_date else None,
            "achievements": self.achievement_tags(),
            "memoriesPublic": bool(self.memories_public),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class UserAchievement(db.Model):
    __tablename__ = "user_achievements"
    __table_args__ = (
        db.UniqueConstraint("user_id", "tag", name="uq_user_achievement_tag"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tag = db.Column(db.String(64), nullable=False)
    unlocked_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "tag": self.tag,
            "unlockedAt": self.unlocked_at.isoformat() if self.unlocked_at else None,
        }
