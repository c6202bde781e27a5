"""
Release Planner
Release blueprint — scheduling, completion tracking and defects.

Endpoints:
    GET     /api/releases                  filtered list, newest release_date first
            ?product&environment&release_version&account_region&status
    POST    /api/releases                  create (status defaults to Scheduled)
    GET     /api/releases/<id>             fetch one
    PUT     /api/releases/<id>             update (merge supplied fields, re-validate)
    PATCH   /api/releases/<id>/status      quick status change
    DELETE  /api/releases/<id>             delete
"""

import logging

from flask import Blueprint, jsonify, request

from release_planner.blueprints import get_store, json_body
from release_planner.core.exceptions import ValidationError
from release_planner.models.release import ReleaseFilter
from release_planner.services.release_lifecycle import ReleaseLifecycleService
from release_planner.services.release_query import filter_releases, sort_by_release_date
from release_planner.services.repositories import AccountRepository, ReleaseRepository

logger = logging.getLogger(__name__)

release_bp = Blueprint("release", __name__, url_prefix="/api")


def _lifecycle():
    return ReleaseLifecycleService.for_store(get_store())


@release_bp.route("/releases", methods=["GET"])
def list_releases():
    store = get_store()
    criteria = ReleaseFilter.from_args(request.args)
    accounts = AccountRepository(store).list() if criteria.account_region else ()
    releases = filter_releases(ReleaseRepository(store).list(), criteria, accounts)
    return jsonify(sort_by_release_date(releases))


@release_bp.route("/releases", methods=["POST"])
def create_release():
    return jsonify(_lifecycle().create(json_body())), 201


@release_bp.route("/releases/<int:release_id>", methods=["GET"])
def get_release(release_id):
    return jsonify(ReleaseRepository(get_store()).get(release_id))


@release_bp.route("/releases/<int:release_id>", methods=["PUT"])
def update_release(release_id):
    return jsonify(_lifecycle().update(release_id, json_body()))


@release_bp.route("/releases/<int:release_id>/status", methods=["PATCH"])
def patch_release_status(release_id):
    data = json_body()
    if not isinstance(data, dict) or not data.get("status"):
        raise ValidationError("status is required", details={"status": "is required"})
    completion = {k: v for k, v in data.items() if k != "status"}
    return jsonify(_lifecycle().set_status(release_id, data["status"], completion))


@release_bp.route("/releases/<int:release_id>", methods=["DELETE"])
def delete_release(release_id):
    _lifecycle().delete(release_id)
    return jsonify({"message": "Release deleted successfully", "id": release_id})
