import os


def _normalize_database_url(url: str) -> str:
    # Render/Heroku sometimes provide postgres:// which SQLAlchemy expects as postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


class Config:
    # Base directory of the backend (one level above this package)
    BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    INSTANCE_DIR = os.path.join(BACKEND_DIR, 'instance')

    ENV_NAME = (os.getenv("WAREHOUSE_ENV", "dev") or "dev").strip().lower()
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")

    _default_sqlite_path = os.path.join(INSTANCE_DIR, 'warehouse_tracker.db').replace('\\', '/')
    _db_url = os.getenv("SQLALCHEMY_DATABASE_URI") or os.getenv("DATABASE_URL") or f"sqlite:///{_default_sqlite_path}"
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(_db_url)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CORS: comma-separated origins for the dashboard front-end
    CORS_ORIGINS = (os.getenv("CORS_ORIGINS") or "").strip()

    # Shared secret the scheduler sends as "Authorization: Bearer <secret>"
    CRON_SECRET_KEY = (os.getenv("CRON_SECRET_KEY") or "").strip()

    UNDO_WINDOW_SECONDS = _int_env("UNDO_WINDOW_SECONDS", 3)
    SECTIONS_PER_ROW = _int_env("SECTIONS_PER_ROW", 3)
    DEFAULT_SECTION_COUNT = _int_env("DEFAULT_SECTION_COUNT", 6)
    MAX_SECTIONS_PER_REQUEST = _int_env("MAX_SECTIONS_PER_REQUEST", 60)

    LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()

    WAREHOUSE_API_URL = (os.getenv("WAREHOUSE_API_URL") or "http://localhost:5000").rstrip("/")
