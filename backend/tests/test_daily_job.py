"""
Daily challenge job tests.
"""

from datetime import date

from dailyvibes.errors import Infrastructure
from dailyvibes.jobs import daily_challenge
from dailyvibes.jobs.daily_challenge import run_daily_challenge
from dailyvibes.models import Notification
from dailyvibes.scheduler import daily_tick, init_scheduler
from dailyvibes.services.challenges import set_override

JUNE_1 = date(2024, 6, 1)


class TestRunDailyChallenge:
    def test_notifies_every_user(self, make_user):
        users = [make_user(name) for name in ("amy", "bob", "cal")]

        result = run_daily_challenge(today=JUNE_1)

        assert result["ok"] is True
        assert result["date"] == "2024-06-01"
        assert result["challenge_id"] == 3
        assert (result["processed"], result["notified"], result["errors"]) == (3, 3, 0)
        for u in users:
            n = Notification.query.filter_by(user_id=u.id).one()
            assert n.type == "daily_challenge"
            assert n.title == "📸 VibeTime!"
            assert n.body == "New challenge: 💼 Workspace"
            assert n.origin == "system"
            assert n.extra_dict() == {"challenge_id": 3, "date": "2024-06-01"}

    def test_rerun_same_day_is_idempotent(self, make_user):
        make_user("amy")
        make_user("bob")

        run_daily_challenge(today=JUNE_1)
        again = run_daily_challenge(today=JUNE_1)

        assert again["notified"] == 0
        assert again["skipped"] == 2
        assert Notification.query.count() == 2

    def test_next_day_notifies_again(self, make_user):
        make_user("amy")
        run_daily_challenge(today=JUNE_1)
        run_daily_challenge(today=date(2024, 6, 2))
        assert Notification.query.count() == 2

    def test_uses_override(self, make_user):
        make_user("amy")
        set_override(JUNE_1, 9)
        result = run_daily_challenge(today=JUNE_1)
        assert result["challenge_id"] == 9
        assert Notification.query.one().body == "New challenge: ☕ Drink"

    def test_small_batches_cover_everyone(self, make_user):
        for i in range(5):
            make_user(f"user{i}")
        result = run_daily_challenge(today=JUNE_1, batch_size=2)
        assert result["processed"] == 5
        assert Notification.query.count() == 5

    def test_one_failure_does_not_stop_the_batch(self, make_user, monkeypatch):
        amy = make_user("amy")
        bob = make_user("bob")
        cal = make_user("cal")
        real_append = daily_challenge.notifications.append

        def flaky(recipient_id, *args, **kwargs):
            if recipient_id == bob.id:
                raise Infrastructure("store down")
            return real_append(recipient_id, *args, **kwargs)

        monkeypatch.setattr(daily_challenge.notifications, "append", flaky)

        result = run_daily_challenge(today=JUNE_1)

        assert result["errors"] == 1
        assert result["notified"] == 2
        assert {n.user_id for n in Notification.query.all()} == {amy.id, cal.id}

    def test_no_users(self, app):
        result = run_daily_challenge(today=JUNE_1)
        assert result["processed"] == 0


class TestScheduler:
    def test_tick_swallows_failures(self, app, monkeypatch):
        def boom(**kwargs):
            raise RuntimeError("db gone")

        monkeypatch.setattr("dailyvibes.scheduler.run_daily_challenge", boom)
        assert daily_tick(app) is None

    def test_tick_runs_job(self, app, make_user, freeze_today):
        make_user("amy")
        freeze_today(JUNE_1)
        result = daily_tick(app)
        assert result["notified"] == 1

    def test_disabled_in_tests(self, app):
        assert init_scheduler(app) is None
        assert "scheduler" not in app.extensions


class TestDailyJobEndpoint:
    def test_admin_only(self, client, register):
        amy = register("amy")
        assert client.post("/api/admin/daily-challenge/run", json={}, headers=amy).status_code == 403

    def test_admin_run(self, client, register):
        admin = register("admin")
        register("amy")
        resp = client.post("/api/admin/daily-challenge/run", json={"date": "2024-06-01"}, headers=admin)
        assert resp.status_code == 200
        job = resp.get_json()["data"]["job"]
        assert job["notified"] == 2
        assert job["challenge_id"] == 3
