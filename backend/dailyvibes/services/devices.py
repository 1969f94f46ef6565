"""Device registry: identity -> live delivery endpoint, with a TTL.

Endpoints live outside the process (Redis or the database) so every server
instance sees the same registrations and a restart loses nothing.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import redis
from flask import current_app

from dailyvibes.extensions import db
from dailyvibes.models import DeviceEndpoint
from dailyvibes.utils.clock import utcnow


@dataclass(frozen=True)
class Endpoint:
    user_id: int
    device_token: str
    platform: str
    expires_at: Optional[datetime] = None


class DeviceRegistry(ABC):
    @abstractmethod
    def register(self, user_id: int, device_token: str, platform: str = "") -> Endpoint:
        ...

    @abstractmethod
    def lookup(self, user_id: int) -> Optional[Endpoint]:
        ...

    @abstractmethod
    def unregister(self, user_id: int) -> None:
        ...


class SqlDeviceRegistry(DeviceRegistry):
    def __init__(self, ttl_seconds: int):
        self.ttl_seconds = int(ttl_seconds)

    def register(self, user_id, device_token, platform=""):
        now = utcnow()
        expires_at = now + timedelta(seconds=self.ttl_seconds)
        row = DeviceEndpoint.query.filter_by(user_id=int(user_id)).first()
        if not row:
            row = DeviceEndpoint(user_id=int(user_id))
            db.session.add(row)
        row.device_token = device_token
        row.platform = platform or ""
        row.expires_at = expires_at
        row.updated_at = now
        db.session.commit()
        return Endpoint(int(user_id), device_token, row.platform, expires_at)

    def lookup(self, user_id):
        row = DeviceEndpoint.query.filter_by(user_id=int(user_id)).first()
        if not row:
            return None
        if row.expires_at <= utcnow():
            return None
        return Endpoint(int(row.user_id), row.device_token, row.platform or "", row.expires_at)

    def unregister(self, user_id):
        DeviceEndpoint.query.filter_by(user_id=int(user_id)).delete(synchronize_session=False)
        db.session.commit()


class RedisDeviceRegistry(DeviceRegistry):
    def __init__(self, client, ttl_seconds: int, prefix: str = "dailyvibes:device:"):
        self.client = client
        self.ttl_seconds = int(ttl_seconds)
        self.prefix = prefix

    def _key(self, user_id) -> str:
        return f"{self.prefix}{int(user_id)}"

    def register(self, user_id, device_token, platform=""):
        expires_at = utcnow() + timedelta(seconds=self.ttl_seconds)
        value = json.dumps({"device_token": device_token, "platform": platform or ""})
        self.client.setex(self._key(user_id), self.ttl_seconds, value)
        return Endpoint(int(user_id), device_token, platform or "", expires_at)

    def lookup(self, user_id):
        raw = self.client.get(self._key(user_id))
        if not raw:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        token = (data or {}).get("device_token")
        if not token:
            return None
        return Endpoint(int(user_id), token, data.get("platform") or "")

    def unregister(self, user_id):
        self.client.delete(self._key(user_id))


def init_device_registry(app) -> DeviceRegistry:
    ttl = int(app.config.get("DEVICE_TTL_SECONDS") or 60 * 60 * 24 * 30)
    redis_url = (app.config.get("REDIS_URL") or "").strip()
    if redis_url:
        registry = RedisDeviceRegistry(redis.Redis.from_url(redis_url), ttl)
    else:
        registry = SqlDeviceRegistry(ttl)
    app.extensions["device_registry"] = registry
    return registry


def get_registry() -> DeviceRegistry:
    return current_app.extensions["device_registry"]
