"""
Release Planner
Flask Application Factory.

Usage:
    from release_planner import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException

from release_planner.config import config
from release_planner.core.exceptions import ReleasePlannerError
from release_planner.middleware.logging_config import configure_logging
from release_planner.middleware.rate_limiter import init_rate_limits
from release_planner.middleware.security_headers import init_security_headers
from release_planner.middleware.timing import init_request_timing
from release_planner.store import RecordStore
from release_planner.utils.errors import E, api_error

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # per-blueprint limits only
)

_HTTP_ERROR_CODES = {
    404: E.NOT_FOUND,
    405: E.METHOD_NOT_ALLOWED,
    413: E.PAYLOAD_TOO_LARGE,
    415: E.UNSUPPORTED_MEDIA,
    429: E.RATE_LIMITED,
}


def create_app(config_name=None, **overrides):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.
        overrides:   Extra config keys applied last (e.g. DATA_DIR in tests).

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())
    app.config.update(overrides)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Record Store ─────────────────────────────────────────────────────
    store = RecordStore(app.config["DATA_DIR"])
    store.initialize()
    app.extensions["record_store"] = store
    logger.info("Data stored in: %s", store.data_dir)

    if app.config.get("RUN_DATA_MIGRATIONS", True):
        from release_planner.services.data_migrations import run_migrations
        run_migrations(store)

    # ── Extensions ───────────────────────────────────────────────────────
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    init_security_headers(app)
    init_request_timing(app)

    # ── Request guards (input length + Content-Type) ─────────────────────
    app.config.setdefault("MAX_CONTENT_LENGTH", 2 * 1024 * 1024)  # 2 MB

    @app.before_request
    def _guard_request():
        from flask import abort
        if request.method in ("POST", "PUT", "PATCH") and request.path.startswith("/api/"):
            ct = request.content_type or ""
            if request.content_length and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Blueprints ───────────────────────────────────────────────────────
    from release_planner.blueprints.account_bp import account_bp
    from release_planner.blueprints.release_version_bp import release_version_bp
    from release_planner.blueprints.release_bp import release_bp
    from release_planner.blueprints.stats_bp import stats_bp
    from release_planner.blueprints.notification_bp import notification_bp
    from release_planner.blueprints.health_bp import health_bp

    app.register_blueprint(account_bp)
    app.register_blueprint(release_version_bp)
    app.register_blueprint(release_bp)
    app.register_blueprint(stats_bp)
    app.register_blueprint(notification_bp)
    app.register_blueprint(health_bp)

    init_rate_limits(app, limiter)

    _register_error_handlers(app)
    _register_cli(app)

    return app


def _register_error_handlers(app):
    @app.errorhandler(ReleasePlannerError)
    def _handle_domain_error(error):
        if error.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, error)
        else:
            logger.info("%s %s rejected: %s", request.method, request.path, error)
        return api_error(error.code, str(error), status=error.status_code, details=error.to_details())

    @app.errorhandler(HTTPException)
    def _handle_http_error(error):
        code = _HTTP_ERROR_CODES.get(error.code, E.INTERNAL if error.code >= 500 else E.VALIDATION_INVALID)
        message = error.description if error.code != 404 else "Not found"
        details = {"path": request.path} if error.code == 404 else None
        return api_error(code, message, status=error.code, details=details)

    @app.errorhandler(Exception)
    def _handle_unexpected(error):
        logger.exception("Unexpected error on %s %s", request.method, request.path)
        return api_error(E.INTERNAL, "Internal server error", status=500)


def _register_cli(app):
    @app.cli.command("migrate-data")
    def migrate_data_cmd():
        """Apply pending data migrations to the JSON collections."""
        from release_planner.services.data_migrations import run_migrations
        applied = run_migrations(app.extensions["record_store"])
        click.echo(f"Applied {len(applied)} migration(s): {', '.join(applied) or 'none pending'}")

    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        """Create demo accounts, release versions and releases in empty collections."""
        from release_planner.services.demo_data import seed_demo_data
        counts = seed_demo_data(app.extensions["record_store"])
        click.echo(
            "Seeded {accounts} account(s), {release_versions} release version(s), "
            "{releases} release(s).".format(**counts)
        )
