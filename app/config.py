"""Application configuration classes."""

import os
from pathlib import Path


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() in ("1", "true", "yes", "on")


class Config:
    """Base configuration."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{Path(__file__).parent.parent / 'instance' / 'worktrack.db'}",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # Caller identity, forwarded by the gateway after token verification
    USER_ID_HEADER = os.environ.get("USER_ID_HEADER", "X-User-Id")

    # Work item settings
    KEY_ALLOCATION_RETRIES = int(os.environ.get("KEY_ALLOCATION_RETRIES", "3"))
    ENFORCE_STATUS_TRANSITIONS = _env_flag("ENFORCE_STATUS_TRANSITIONS")

    # Physical deletion is never exposed unless explicitly enabled
    ALLOW_PURGE = _env_flag("ALLOW_PURGE")


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    ALLOW_PURGE = True


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
