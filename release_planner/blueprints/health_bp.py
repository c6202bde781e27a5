"""
Health check blueprint.

Endpoints:
    GET /api/health/ready  — simple 200 for load balancers
    GET /api/health/live   — data directory and collection status
"""

import logging
import os
import time

from flask import Blueprint, current_app, jsonify

from release_planner.blueprints import get_store

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/health")


@health_bp.route("", methods=["GET"])
@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe — always 200 if app is running."""
    return jsonify({"status": "ok", "app": "Release Planner"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check: data directory writable, collections readable."""
    store = get_store()
    checks = {}
    overall = True

    # ── Data directory ───────────────────────────────────────────────
    writable = os.path.isdir(store.data_dir) and os.access(store.data_dir, os.W_OK)
    checks["data_dir"] = {"status": "ok" if writable else "error", "path": store.data_dir}
    if not writable:
        overall = False
        logger.error("Health check — data directory not writable: %s", store.data_dir)

    # ── Collections ──────────────────────────────────────────────────
    for name in store.collections:
        t0 = time.perf_counter()
        records = store.load(name)
        checks[name] = {
            "status": "ok" if os.path.exists(store.path_for(name)) else "missing",
            "records": len(records),
            "latency_ms": round((time.perf_counter() - t0) * 1000, 1),
        }

    # ── App info ─────────────────────────────────────────────────────
    checks["app"] = {
        "name": "Release Planner",
        "debug": current_app.debug,
        "testing": current_app.testing,
        "smtp_configured": bool(current_app.config.get("MAIL_SERVER")),
    }

    status = "ok" if overall else "degraded"
    return jsonify({"status": status, "checks": checks}), 200 if overall else 503
