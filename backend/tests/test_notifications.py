"""
Notification inbox, device registry and live delivery tests.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from dailyvibes import create_app
from dailyvibes.config import TestingConfig
from dailyvibes.extensions import db
from dailyvibes.models import DeviceEndpoint, Notification
from dailyvibes.services import delivery, notifications
from dailyvibes.services.devices import DeviceRegistry, RedisDeviceRegistry, SqlDeviceRegistry, get_registry
from dailyvibes.utils.clock import utcnow


class FakeRedis:
    """Just enough of redis.Redis for the registry."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def setex(self, key, ttl, value):
        self.store[key] = value.encode("utf-8")
        self.ttls[key] = ttl

    def get(self, key):
        return self.store.get(key)

    def delete(self, key):
        self.store.pop(key, None)


@pytest.fixture
def pushes(app, monkeypatch):
    """Capture live deliveries instead of calling the gateway."""
    sent = []

    def fake_send_push(**kwargs):
        sent.append(kwargs)
        return True, "sent"

    app.config["PUSH_GATEWAY_URL"] = "https://push.example.test/send"
    monkeypatch.setattr(delivery, "send_push", fake_send_push)
    return sent


class TestInbox:
    def test_list_newest_first_with_unread_count(self, make_user):
        amy = make_user("amy")
        first = notifications.append(amy.id, "one", "b1", "friend_request", origin="bob")
        second = notifications.append(amy.id, "two", "b2", "friend_request", origin="cal")
        first.created_at = utcnow() - timedelta(minutes=5)
        db.session.commit()

        rows, unread = notifications.list_for(amy.id)

        assert [n.id for n in rows] == [second.id, first.id]
        assert unread == 2

    def test_unread_count_is_within_page(self, make_user):
        amy = make_user("amy")
        for i in range(5):
            notifications.append(amy.id, f"t{i}", "", "friend_request")
        rows, unread = notifications.list_for(amy.id, limit=2)
        assert len(rows) == 2
        assert unread == 2

    def test_mark_read(self, make_user):
        amy = make_user("amy")
        n = notifications.append(amy.id, "t", "", "friend_request")

        assert notifications.mark_read(amy.id, n.id) is True
        _, unread = notifications.list_for(amy.id)
        assert unread == 0

    def test_mark_read_foreign_or_missing_is_noop(self, make_user):
        amy = make_user("amy")
        bob = make_user("bob")
        n = notifications.append(amy.id, "t", "", "friend_request")

        assert notifications.mark_read(bob.id, n.id) is False
        assert notifications.mark_read(amy.id, 4242) is False
        assert notifications.mark_read(amy.id, "not-a-number") is False
        db.session.refresh(n)
        assert n.read is False

    def test_clear(self, make_user):
        amy = make_user("amy")
        bob = make_user("bob")
        notifications.append(amy.id, "a", "", "friend_request")
        notifications.append(amy.id, "b", "", "friend_request")
        notifications.append(bob.id, "c", "", "friend_request")

        assert notifications.clear(amy.id) == 2
        assert notifications.list_for(amy.id) == ([], 0)
        assert Notification.query.filter_by(user_id=bob.id).count() == 1

    def test_dedupe_key(self, make_user):
        amy = make_user("amy")
        a = notifications.append(amy.id, "t", "", "daily_challenge",
                                 extra={"challenge_id": 1, "date": "2024-01-01"}, dedupe_key="k1")
        b = notifications.append(amy.id, "t", "", "daily_challenge",
                                 extra={"challenge_id": 1, "date": "2024-01-01"}, dedupe_key="k1")
        assert a.id == b.id
        assert Notification.query.count() == 1

    def test_fan_out_dedupe(self, make_user):
        amy = make_user("amy")
        bob = make_user("bob")
        kwargs = dict(origin="cal", extra={"photo_id": "cal_2024-01-01"}, dedupe_prefix="new_photo:x")
        first = notifications.fan_out([amy.id, bob.id, amy.id], "t", "b", "new_photo", **kwargs)
        again = notifications.fan_out([amy.id, bob.id], "t", "b", "new_photo", **kwargs)
        assert len(first) == 2
        assert again == []

    def test_system_origin(self, make_user):
        amy = make_user("amy")
        n = notifications.append(amy.id, "t", "", "daily_challenge",
                                 extra={"challenge_id": 3, "date": "2024-06-01"})
        assert n.to_dict()["from"] == "system"
        assert n.to_dict()["extra"] == {"challenge_id": 3, "date": "2024-06-01"}


class TestPayloads:
    def test_unknown_type(self):
        with pytest.raises(ValueError):
            notifications.build_extra("poke", {})

    def test_unexpected_keys(self):
        with pytest.raises(ValueError):
            notifications.build_extra("like", {"photo_id": "x", "text": "nope"})

    def test_known_shapes(self):
        assert notifications.build_extra("comment", {"photo_id": "x", "text": "hi"}) == {"photo_id": "x", "text": "hi"}
        assert notifications.build_extra("friend_request") == {}


class TestDeviceRegistry:
    def test_sql_register_and_lookup(self, make_user):
        amy = make_user("amy")
        reg = SqlDeviceRegistry(ttl_seconds=60)
        reg.register(amy.id, "tok-1", "ios")
        reg.register(amy.id, "tok-2", "android")

        ep = reg.lookup(amy.id)
        assert ep.device_token == "tok-2"
        assert ep.platform == "android"
        assert DeviceEndpoint.query.count() == 1

    def test_sql_expired_endpoint_is_ignored(self, make_user):
        amy = make_user("amy")
        reg = SqlDeviceRegistry(ttl_seconds=60)
        reg.register(amy.id, "tok", "ios")
        row = DeviceEndpoint.query.filter_by(user_id=amy.id).first()
        row.expires_at = utcnow() - timedelta(seconds=1)
        db.session.commit()
        assert reg.lookup(amy.id) is None

    def test_sql_unregister(self, make_user):
        amy = make_user("amy")
        reg = SqlDeviceRegistry(ttl_seconds=60)
        reg.register(amy.id, "tok", "ios")
        reg.unregister(amy.id)
        assert reg.lookup(amy.id) is None

    def test_redis_registry(self):
        client = FakeRedis()
        reg = RedisDeviceRegistry(client, ttl_seconds=120)
        reg.register(7, "tok", "ios")

        assert client.ttls["dailyvibes:device:7"] == 120
        ep = reg.lookup(7)
        assert (ep.user_id, ep.device_token, ep.platform) == (7, "tok", "ios")
        assert reg.lookup(8) is None

        reg.unregister(7)
        assert reg.lookup(7) is None

    def test_redis_garbage_value(self):
        client = FakeRedis()
        client.store["dailyvibes:device:1"] = b"{not json"
        assert RedisDeviceRegistry(client, ttl_seconds=1).lookup(1) is None

    def test_app_uses_sql_without_redis_url(self, app):
        assert isinstance(get_registry(), SqlDeviceRegistry)

    def test_partial_backend_cannot_be_created(self):
        class LookupOnly(DeviceRegistry):
            def lookup(self, user_id):
                return None

        with pytest.raises(TypeError):
            LookupOnly()


class TestLiveDelivery:
    def test_pushed_when_registered(self, make_user, pushes):
        amy = make_user("amy")
        get_registry().register(amy.id, "tok", "ios")

        notifications.append(amy.id, "👋 New friend request!", "bob wants to be your friend",
                             "friend_request", origin="bob")

        assert len(pushes) == 1
        assert pushes[0]["device_token"] == "tok"
        assert pushes[0]["title"] == "👋 New friend request!"

    def test_not_pushed_without_device(self, make_user, pushes):
        amy = make_user("amy")
        notifications.append(amy.id, "t", "", "friend_request")
        assert pushes == []
        assert Notification.query.count() == 1

    def test_gateway_failure_does_not_lose_notification(self, app, make_user, monkeypatch):
        amy = make_user("amy")
        get_registry().register(amy.id, "tok", "ios")
        app.config["PUSH_GATEWAY_URL"] = "https://push.example.test/send"

        def broken(**kwargs):
            raise RuntimeError("gateway down")

        monkeypatch.setattr(delivery, "send_push", broken)

        n = notifications.append(amy.id, "t", "", "friend_request")

        assert n.id is not None
        assert Notification.query.count() == 1

    def test_no_gateway_configured(self, make_user, monkeypatch):
        amy = make_user("amy")
        get_registry().register(amy.id, "tok", "ios")
        calls = []
        monkeypatch.setattr(delivery, "send_push", lambda **kw: calls.append(kw))

        notifications.append(amy.id, "t", "", "friend_request")

        assert calls == []

    def test_async_pool_shut_down_at_exit(self, monkeypatch):
        hooks = []
        monkeypatch.setattr(delivery.atexit, "register", lambda fn, *a, **kw: hooks.append((fn, kw)))

        app = create_app({"PUSH_ASYNC": True, "PUSH_WORKERS": 2}, config_object=TestingConfig)
        executor = app.extensions["push_executor"]

        assert isinstance(executor, ThreadPoolExecutor)
        assert (executor.shutdown, {"wait": False}) in hooks
        executor.shutdown(wait=True)

    def test_inline_delivery_has_no_pool(self, app):
        assert app.extensions["push_executor"] is None


class TestNotificationEndpoints:
    def test_register_device_requires_token(self, client, register):
        amy = register("amy")
        resp = client.post("/api/notifications/register", json={}, headers=amy)
        assert resp.status_code == 400

    def test_register_device(self, client, register):
        amy = register("amy")
        resp = client.post("/api/notifications/register", json={"deviceToken": "tok", "platform": "ios"},
                           headers=amy)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["expiresAt"]

    def test_list_read_and_clear(self, client, register):
        amy = register("amy")
        bob = register("bob")
        client.post("/api/friends/add", json={"friendUsername": "bob"}, headers=amy)

        body = client.get("/api/notifications", headers=bob).get_json()
        assert body["unreadCount"] == 1
        assert body["data"]["unreadCount"] == 1
        item = body["notifications"][0]
        assert item["type"] == "friend_request"
        assert item["from"] == "amy"

        assert client.post(f"/api/notifications/{item['id']}/read", headers=bob).status_code == 200
        assert client.get("/api/notifications", headers=bob).get_json()["unreadCount"] == 0

        resp = client.post("/api/notifications/read", headers=bob)
        assert resp.get_json()["data"]["removed"] == 1
        assert client.get("/api/notifications", headers=bob).get_json()["notifications"] == []

    def test_mark_read_unknown_id_is_ok(self, client, register):
        amy = register("amy")
        assert client.post("/api/notifications/999/read", headers=amy).status_code == 200

    def test_bad_limit(self, client, register):
        amy = register("amy")
        assert client.get("/api/notifications?limit=0", headers=amy).status_code == 400

    @pytest.mark.parametrize("payload", [
        {"deviceToken": 12345},
        {"deviceToken": "tok", "platform": ["ios"]},
    ])
    def test_register_device_non_string_is_400(self, client, register, payload):
        amy = register("amy")
        resp = client.post("/api/notifications/register", json=payload, headers=amy)
        assert resp.status_code == 400
        assert DeviceEndpoint.query.count() == 0
