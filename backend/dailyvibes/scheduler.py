from __future__ import annotations

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from dailyvibes.jobs.daily_challenge import run_daily_challenge

DAILY_JOB_ID = "daily_challenge"


def daily_tick(app) -> dict | None:
    """Scheduled entry point. A failed run is logged; the next tick retries."""
    with app.app_context():
        try:
            return run_daily_challenge()
        except Exception:
            app.logger.exception("daily challenge job failed; retrying on next tick")
            return None


def init_scheduler(app) -> BackgroundScheduler | None:
    if not app.config.get("SCHEDULER_ENABLED"):
        return None

    tz = app.config.get("VIBE_TIMEZONE") or "UTC"
    scheduler = BackgroundScheduler(timezone=tz)
    scheduler.add_job(
        daily_tick,
        CronTrigger(
            hour=int(app.config.get("DAILY_JOB_HOUR", 10)),
            minute=int(app.config.get("DAILY_JOB_MINUTE", 0)),
            timezone=tz,
        ),
        args=[app],
        id=DAILY_JOB_ID,
        replace_existing=True,
        coalesce=True,
        max_instances=1,
        misfire_grace_time=60 * 60,
    )
    scheduler.start()
    app.extensions["scheduler"] = scheduler
    app.logger.info(
        "daily challenge job scheduled at %02d:%02d %s",
        int(app.config.get("DAILY_JOB_HOUR", 10)),
        int(app.config.get("DAILY_JOB_MINUTE", 0)),
        tz,
    )
    return scheduler
