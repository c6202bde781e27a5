"""
Release Planner
Configuration classes for Flask App Factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

# Default data directory for local dev
_DATA_DIR_DEV = os.path.join(basedir, "instance", "data")

# Generate a random key for development; production MUST use a stable env var
_DEV_SECRET = secrets.token_hex(32)


def _env_list(name, default=""):
    return [item.strip().lower() for item in os.getenv(name, default).split(",") if item.strip()]


def _env_bool(name, default):
    return os.getenv(name, default).lower() == "true"


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    # Record Store
    DATA_DIR = os.getenv("DATA_DIR", _DATA_DIR_DEV)
    RUN_DATA_MIGRATIONS = _env_bool("RUN_DATA_MIGRATIONS", "true")

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Rate limiting
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # Email / SMTP (optional; dev mode logs without sending)
    MAIL_SERVER = os.getenv("MAIL_SERVER")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "25"))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", "false")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "release-management@localhost")
    MAIL_SENDER_NAME = os.getenv("MAIL_SENDER_NAME", "Release Management System")

    # Recipient policy: empty allow-list accepts any domain
    EMAIL_ALLOWED_DOMAINS = _env_list("EMAIL_ALLOWED_DOMAINS")
    EMAIL_MAX_RECIPIENTS = int(os.getenv("EMAIL_MAX_RECIPIENTS", "50"))


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    # Tests override DATA_DIR with a tmp_path per test
    DATA_DIR = os.getenv("TEST_DATA_DIR", os.path.join(basedir, "instance", "test-data"))
    RATELIMIT_ENABLED = False
    MAIL_SERVER = None
    EMAIL_ALLOWED_DOMAINS = ["example.com", "example.org"]


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # Must be set explicitly in production

    def __init__(self):
        if not os.getenv("DATA_DIR"):
            raise RuntimeError("DATA_DIR environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
