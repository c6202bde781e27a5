"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in release_planner/__init__.py with no
default limits; this module applies granular limits per route category.

Usage:
    from release_planner.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

EMAIL_LIMIT = "10/minute"
WRITE_LIMIT = "60/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Email endpoints:  10/minute  (each call hits the SMTP relay)
        - CRUD endpoints:   60/minute  (admin traffic, single writer)
        - Stats / health:   exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    bp = app.blueprints.get("notification")
    if bp:
        limiter.limit(EMAIL_LIMIT)(bp)

    for bp_name in ("account", "release_version", "release"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT, methods=["POST", "PUT", "PATCH", "DELETE"])(bp)

    for bp_name in ("stats", "health"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.exempt(bp)

    app.logger.info("Rate limiter configured — email: %s, write: %s", EMAIL_LIMIT, WRITE_LIMIT)
