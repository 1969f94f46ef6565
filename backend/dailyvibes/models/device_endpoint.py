from dailyvibes.extensions import db
from dailyvibes.utils.clock import utcnow


class DeviceEndpoint(db.Model):
    __tablename__ = "device_endpoints"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    device_token = db.Column(db.String(512), nullable=False)
    platform = db.Column(db.String(32), nullable=False, default="")

    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)
