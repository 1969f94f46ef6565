import os

import click
from flask import Flask, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from dailyvibes.config import Config
from dailyvibes.errors import register_error_handlers
from dailyvibes.extensions import db, cors
from dailyvibes.segments.segment_auth import auth_bp
from dailyvibes.segments.segment_profile import profile_bp
from dailyvibes.segments.segment_challenges import challenges_bp
from dailyvibes.segments.segment_photos import photos_bp
from dailyvibes.segments.segment_friends import friends_bp
from dailyvibes.segments.segment_notifications import notifications_bp
from dailyvibes.services.challenges import seed_default_challenges
from dailyvibes.services.delivery import init_delivery
from dailyvibes.services.devices import init_device_registry


def create_app(overrides=None, config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    env = (app.config.get("ENV") or "dev").strip().lower()

    # Production safety checks
    if env in ("prod", "production"):
        secret = (app.config.get("SECRET_KEY") or "").strip()
        if not secret or len(secret) < 16 or secret == "dev-secret-change-me":
            raise RuntimeError("SECRET_KEY must be set and at least 16 chars in production")
        if not (os.getenv("DATABASE_URL") or "").strip() and not (os.getenv("SQLALCHEMY_DATABASE_URI") or "").strip():
            raise RuntimeError("DATABASE_URL (or SQLALCHEMY_DATABASE_URI) must be set in production")

    # Ensure instance dir exists for SQLite paths
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and ":memory:" not in app.config["SQLALCHEMY_DATABASE_URI"]:
        os.makedirs(app.config.get("INSTANCE_DIR") or "instance", exist_ok=True)

    # CORS configuration
    cors_origins = (app.config.get("CORS_ORIGINS") or "").strip()
    if env in ("prod", "production"):
        origins = [o.strip() for o in cors_origins.split(",") if o.strip()]
    else:
        origins = ["*"] if not cors_origins else [o.strip() for o in cors_origins.split(",") if o.strip()]
    cors.init_app(app, resources={r"/api/*": {"origins": origins}})

    # Init extensions
    db.init_app(app)
    init_device_registry(app)
    init_delivery(app)

    register_error_handlers(app)

    # Register API routes
    app.register_blueprint(auth_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(challenges_bp)
    app.register_blueprint(photos_bp)
    app.register_blueprint(friends_bp)
    app.register_blueprint(notifications_bp)

    with app.app_context():
        db.create_all()
        seed_default_challenges()

    # Health check
    @app.get("/api/health")
    def health():
        db_state = "ok"
        try:
            db.session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            db.session.rollback()
            db_state = "fail"
        return jsonify({
            "success": True,
            "service": "dailyvibes-backend",
            "env": env,
            "db": db_state,
        })

    @app.cli.command("seed-challenges")
    def seed_challenges_command():
        """Insert the default challenge catalogue if it is empty."""
        inserted = seed_default_challenges()
        click.echo(f"inserted {inserted} challenges")

    @app.cli.command("run-daily-challenge")
    @click.option("--date", "day", default=None, help="Vibe day (YYYY-MM-DD), defaults to today.")
    def run_daily_challenge_command(day):
        """Send today's challenge notification to every user."""
        from dailyvibes.jobs.daily_challenge import run_daily_challenge
        from dailyvibes.utils.clock import parse_day

        parsed = parse_day(day) if day else None
        if day and parsed is None:
            raise click.BadParameter("date must be YYYY-MM-DD")
        click.echo(run_daily_challenge(today=parsed))

    if app.config.get("SCHEDULER_ENABLED") and not app.config.get("TESTING"):
        from dailyvibes.scheduler import init_scheduler

        init_scheduler(app)

    return app
