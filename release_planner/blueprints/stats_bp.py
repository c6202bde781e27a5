"""
Release Planner
Stats blueprint — read-only dashboard views.

Endpoints:
    GET  /api/stats              counters, status / version / region histograms
    GET  /api/stats/defects      defect totals, rate and breakdowns
    GET  /api/stats/completion   completion roll-up (average time taken)
    GET  /api/defects            flattened defects of completed releases
         ?account_name&release_version&severity&status
    GET  /api/filter-options     values for the release table dropdowns
"""

import logging

from flask import Blueprint, jsonify, request

from release_planner.blueprints import get_store
from release_planner.services import release_query
from release_planner.services.repositories import (
    AccountRepository,
    ReleaseRepository,
    ReleaseVersionRepository,
)

logger = logging.getLogger(__name__)

stats_bp = Blueprint("stats", __name__, url_prefix="/api")


@stats_bp.route("/stats", methods=["GET"])
def get_stats():
    store = get_store()
    return jsonify(release_query.compute_stats(
        ReleaseRepository(store).list(),
        AccountRepository(store).list(),
        ReleaseVersionRepository(store).list(),
    ))


@stats_bp.route("/stats/defects", methods=["GET"])
def get_defect_stats():
    return jsonify(release_query.compute_defect_stats(ReleaseRepository(get_store()).list()))


@stats_bp.route("/stats/completion", methods=["GET"])
def get_completion_stats():
    return jsonify(release_query.compute_enhanced_stats(ReleaseRepository(get_store()).list()))


@stats_bp.route("/defects", methods=["GET"])
def list_defects():
    defects = release_query.flatten_defects(ReleaseRepository(get_store()).list())
    filtered = release_query.filter_defects(
        defects,
        account_name=(request.args.get("account_name") or "").strip(),
        release_version=(request.args.get("release_version") or "").strip(),
        severity=(request.args.get("severity") or "").strip(),
        status=(request.args.get("status") or "").strip(),
    )
    return jsonify({"items": filtered, "total": len(filtered)})


@stats_bp.route("/filter-options", methods=["GET"])
def get_filter_options():
    store = get_store()
    return jsonify(release_query.filter_options(
        AccountRepository(store).list(),
        ReleaseVersionRepository(store).list(),
    ))
