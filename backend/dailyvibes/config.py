import os


def _normalize_database_url(url: str) -> str:
    # Render/Heroku sometimes provide postgres:// which SQLAlchemy expects as postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Config:
    # Base directory of the backend (one level above this package)
    BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    INSTANCE_DIR = os.path.join(BACKEND_DIR, "instance")

    ENV = (os.getenv("DAILYVIBES_ENV", "dev") or "dev").strip().lower()
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")

    _default_sqlite_path = os.path.join(INSTANCE_DIR, "dailyvibes.db").replace("\\", "/")
    _db_url = os.getenv("DATABASE_URL") or os.getenv("SQLALCHEMY_DATABASE_URI") or f"sqlite:///{_default_sqlite_path}"
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(_db_url)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CORS: comma-separated origins for web builds
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")

    # Engagement rules
    VIBE_TIMEZONE = os.getenv("VIBE_TIMEZONE", "Europe/Berlin")
    MAX_PHOTOS_PER_DAY = _env_int("MAX_PHOTOS_PER_DAY", 3)
    NOTIFICATION_PAGE_SIZE = _env_int("NOTIFICATION_PAGE_SIZE", 50)
    TOKEN_TTL_SECONDS = _env_int("TOKEN_TTL_SECONDS", 60 * 60 * 24 * 30)
    ADMIN_USERNAMES = os.getenv("ADMIN_USERNAMES", "")

    # Daily challenge job
    SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED", True)
    DAILY_JOB_HOUR = _env_int("DAILY_JOB_HOUR", 10)
    DAILY_JOB_MINUTE = _env_int("DAILY_JOB_MINUTE", 0)

    # Device registry + live delivery
    REDIS_URL = os.getenv("REDIS_URL", "")
    DEVICE_TTL_SECONDS = _env_int("DEVICE_TTL_SECONDS", 60 * 60 * 24 * 30)
    PUSH_GATEWAY_URL = os.getenv("PUSH_GATEWAY_URL", "")
    PUSH_API_KEY = os.getenv("PUSH_API_KEY", "")
    PUSH_TIMEOUT_SECONDS = _env_int("PUSH_TIMEOUT_SECONDS", 10)
    PUSH_ASYNC = _env_bool("PUSH_ASYNC", True)
    PUSH_WORKERS = _env_int("PUSH_WORKERS", 4)


class TestingConfig(Config):
    TESTING = True
    ENV = "test"
    SECRET_KEY = "test-secret-key-0123456789"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    VIBE_TIMEZONE = "UTC"
    SCHEDULER_ENABLED = False
    REDIS_URL = ""
    PUSH_GATEWAY_URL = ""
    PUSH_ASYNC = False
    ADMIN_USERNAMES = "admin"
