"""
Release Planner
Release version blueprint — admin CRUD for release trains and their features.

Endpoints (also served under the legacy /api/regions prefix):
    GET     /api/releaseVersions          list, sorted by name
    POST    /api/releaseVersions          create (400 on duplicate name)
    GET     /api/releaseVersions/<id>     fetch one
    PUT     /api/releaseVersions/<id>     update (404 missing, 400 duplicate name)
    DELETE  /api/releaseVersions/<id>     delete (400 while referenced by a release)
"""

import logging

from flask import Blueprint, jsonify

from release_planner.blueprints import get_store, json_body
from release_planner.models.release_version import ReleaseVersionInput
from release_planner.services.repositories import ReleaseVersionRepository

logger = logging.getLogger(__name__)

release_version_bp = Blueprint("release_version", __name__, url_prefix="/api")


def _repo():
    return ReleaseVersionRepository(get_store())


@release_version_bp.route("/releaseVersions", methods=["GET"])
@release_version_bp.route("/regions", methods=["GET"])
def list_release_versions():
    return jsonify(_repo().list_sorted())


@release_version_bp.route("/releaseVersions", methods=["POST"])
@release_version_bp.route("/regions", methods=["POST"])
def create_release_version():
    dto = ReleaseVersionInput.from_payload(json_body())
    return jsonify(_repo().create(dto.changes())), 201


@release_version_bp.route("/releaseVersions/<int:version_id>", methods=["GET"])
@release_version_bp.route("/regions/<int:version_id>", methods=["GET"])
def get_release_version(version_id):
    return jsonify(_repo().get(version_id))


@release_version_bp.route("/releaseVersions/<int:version_id>", methods=["PUT"])
@release_version_bp.route("/regions/<int:version_id>", methods=["PUT"])
def update_release_version(version_id):
    dto = ReleaseVersionInput.from_payload(json_body(), partial=True)
    return jsonify(_repo().update(version_id, dto.changes()))


@release_version_bp.route("/releaseVersions/<int:version_id>", methods=["DELETE"])
@release_version_bp.route("/regions/<int:version_id>", methods=["DELETE"])
def delete_release_version(version_id):
    _repo().delete(version_id)
    return jsonify({"message": "Release version deleted successfully", "id": version_id})
