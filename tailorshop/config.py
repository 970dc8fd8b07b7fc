import os


def normalize_db_url(url: str) -> str:
    url = (url or "").strip()
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


class Config:
    """Configuration for the Flask app and database.

    - ``SQLALCHEMY_DATABASE_URI``: defaults to a local SQLite file but can be
      overridden via the ``DATABASE_URL`` environment variable (e.g. a
      PostgreSQL URL in production).
    - ``SQLALCHEMY_TRACK_MODIFICATIONS``: disables the event system which
      otherwise adds overhead.
    - ``SECRET_KEY``: used by Flask for session signing.  In production you
      should set this to a strong random value via the environment.
    - ``ALTERATIONS_*``: knobs for the tailor auto-assignment engine.  The
      daily cap is in minutes, proficiency is the minimum rating that counts
      as qualified, and the default duration is used when a task type does
      not define one.
    """

    SQLALCHEMY_DATABASE_URI = normalize_db_url(os.getenv("DATABASE_URL")) or "sqlite:///tailorshop.db"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JSON_SORT_KEYS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    QR_DIR = os.getenv("QR_DIR", os.path.join("static", "qrcodes"))
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024

    ALTERATIONS_MAX_DAILY_MINUTES = int(os.getenv("ALTERATIONS_MAX_DAILY_MINUTES", "480"))
    ALTERATIONS_QUALIFIED_PROFICIENCY = int(os.getenv("ALTERATIONS_QUALIFIED_PROFICIENCY", "3"))
    ALTERATIONS_DEFAULT_DURATION = int(os.getenv("ALTERATIONS_DEFAULT_DURATION", "60"))

    SCAN_LOG_DEFAULT_LIMIT = 50
    SCAN_LOG_MAX_LIMIT = 200
    DASHBOARD_RECENT_ACTIVITY = 10


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
