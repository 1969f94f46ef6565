from dailyvibes.extensions import db
from dailyvibes.utils.clock import utcnow


class Photo(db.Model):
    __tablename__ = "photos"
    __table_args__ = (
        # slot is drawn from 1..MAX_PHOTOS_PER_DAY, so this caps photos per vibe day
        db.UniqueConstraint("user_id", "vibe_date", "slot", name="uq_photo_owner_day_slot"),
    )

    id = db.Column(db.Integer, primary_key=True)
    photo_key = db.Column(db.String(120), unique=True, index=True, nullable=False)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    vibe_date = db.Column(db.Date, nullable=False, index=True)
    slot = db.Column(db.Integer, nullable=False, default=1)

    image_data = db.Column(db.Text, nullable=False)
    caption = db.Column(db.String(500), nullable=False, default="")

    # Frozen at capture time; later overrides never rewrite it.
    challenge_title = db.Column(db.String(160), nullable=False, default="")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    owner = db.relationship("User")
    likes = db.relationship(
        "PhotoLike",
        order_by="PhotoLike.id",
        cascade="all, delete-orphan",
    )
    comments = db.relationship(
        "PhotoComment",
        order_by="PhotoComment.id",
        cascade="all, delete-orphan",
    )

    @staticmethod
    def make_key(username: str, vibe_date, slot: int) -> str:
        base = f"{username}_{vibe_date.isoformat()}"
        return base if int(slot) == 1 else f"{base}_{int(slot)}"

    def liked_by(self) -> list:
        return [like.user.username for like in self.likes if like.user is not None]

    def to_dict(self) -> dict:
        owner = self.owner
        return {
            "id": self.photo_key,
            "username": owner.username if owner else None,
            "userProfileImage": (owner.profile_image or None) if owner else None,
            "date": self.vibe_date.isoformat() if self.vibe_date else None,
            "slot": int(self.slot or 1),
            "imageData": self.image_data,
            "caption": self.caption or "",
            "challenge": self.challenge_title or "",
            "likes": self.liked_by(),
            "comments": [c.to_dict() for c in self.comments],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class PhotoLike(db.Model):
    __tablename__ = "photo_likes"
    __table_args__ = (
        db.UniqueConstraint("photo_id", "user_id", name="uq_photo_like_user"),
    )

    id = db.Column(db.Integer, primary_key=True)
    photo_id = db.Column(db.Integer, db.ForeignKey("photos.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User")


class PhotoComment(db.Model):
    __tablename__ = "photo_comments"

    id = db.Column(db.Integer, primary_key=True)
    photo_id = db.Column(db.Integer, db.ForeignKey("photos.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text = db.Column(db.String(500), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User")

    def to_dict(self):
        return {
            "username": self.user.username if self.user else None,
            "text": self.text,
            "timestamp": self.created_at.isoformat() if self.created_at else None,
        }
