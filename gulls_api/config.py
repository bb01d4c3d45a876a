"""
Gull Licensing API
Configuration classes for Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

# Default SQLite path for local dev when PostgreSQL is not running
_SQLITE_DEV = f"sqlite:///{os.path.join(basedir, 'instance', 'gulls_dev.db')}"
_SQLITE_TEST = "sqlite:///:memory:"

# Generate a random key for development; production MUST use a stable env var
_DEV_SECRET = secrets.token_hex(32)

_API_HOST = os.getenv("API_HOST", "localhost")
_PATH_PREFIX = os.getenv("PATH_PREFIX", "/gulls-health-and-safety-api")


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    PATH_PREFIX = _PATH_PREFIX

    # SQLAlchemy
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,   # recycle connections every 5 min
    }

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # GOV.UK Notify (optional: no key means notifications are disabled)
    NOTIFY_API_KEY = os.getenv("NOTIFY_API_KEY")
    NOTIFY_REPLY_TO_ID = os.getenv("NOTIFY_REPLY_TO_ID", "4b49467e-2a35-4713-9d92-809c55bf1cdd")
    AMENDMENT_TEMPLATE_ID = os.getenv("AMENDMENT_TEMPLATE_ID", "9cfcaca5-ef5d-46c4-8ccf-328bcf67ad6d")
    RETURN_TEMPLATE_ID = os.getenv("RETURN_TEMPLATE_ID", "d5f606fd-2bc2-4d4e-ae46-faa2ea20e900")
    AMENDMENT_INTERNAL_MAILBOX = os.getenv("AMENDMENT_INTERNAL_MAILBOX", "issuedlicence@nature.scot")
    NOTIFY_MAX_ATTEMPTS = int(os.getenv("NOTIFY_MAX_ATTEMPTS", "3"))

    # Catalog categorisation: which condition / advisory ids belong to which
    # block of the amendment email. Anything not listed is an optional item.
    CONDITION_GROUPS = {
        "general": (12, 13),
        "what_you_must_do": (14, 15, 16, 17, 18),
        "reporting": (19, 20, 21, 22, 23, 24, 25),
    }
    ADVISORY_NOTE_IDS = (1, 2, 3, 4, 5, 6, 7, 8, 9)

    # Dates in emails are shown in this zone; timestamps are stored in UTC
    DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "Europe/London")

    # Scheduler
    SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
    REMINDER_URL = os.getenv("REMINDER_URL", f"https://{_API_HOST}{_PATH_PREFIX}/reminder")
    REMINDER_TIMEOUT = int(os.getenv("REMINDER_TIMEOUT", "30"))
    # Per-job overrides of the default wall-clock schedule, e.g.
    # {"return_reminder": {"hour": 3, "minute": 0}}
    JOB_SCHEDULES = {}


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    _raw_db_url = os.getenv("DATABASE_URL", "")
    SQLALCHEMY_DATABASE_URI = (
        _raw_db_url.replace("postgres://", "postgresql://", 1) if _raw_db_url else _SQLITE_DEV
    )
    # The reloader would start a second timer thread
    SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "false").lower() == "true"


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    SQLALCHEMY_ENGINE_OPTIONS = {}
    # Notifications always start disabled in tests; individual tests opt in
    NOTIFY_API_KEY = None
    SCHEDULER_ENABLED = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    # Hosting platforms use postgres:// but SQLAlchemy 2.0 requires postgresql://
    _raw_db_url = os.getenv("DATABASE_URL", "")
    SQLALCHEMY_DATABASE_URI = _raw_db_url.replace("postgres://", "postgresql://", 1) if _raw_db_url else None
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # Must be set explicitly in production

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
        "pool_timeout": 20,
        "connect_args": {
            "options": "-c statement_timeout=30000",  # 30s query timeout
        },
    }

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
