"""
Release Planner
Account blueprint — admin CRUD for customer accounts.

Endpoints:
    GET     /api/accounts          list, sorted by name
    POST    /api/accounts          create (400 on duplicate name)
    GET     /api/accounts/<id>     fetch one
    PUT     /api/accounts/<id>     update (404 missing, 400 duplicate name)
    DELETE  /api/accounts/<id>     delete (400 while referenced by a release)
"""

import logging

from flask import Blueprint, jsonify

from release_planner.blueprints import get_store, json_body
from release_planner.models.account import AccountInput
from release_planner.services.repositories import AccountRepository

logger = logging.getLogger(__name__)

account_bp = Blueprint("account", __name__, url_prefix="/api")


def _repo():
    return AccountRepository(get_store())


@account_bp.route("/accounts", methods=["GET"])
def list_accounts():
    return jsonify(_repo().list_sorted())


@account_bp.route("/accounts", methods=["POST"])
def create_account():
    dto = AccountInput.from_payload(json_body())
    account = _repo().create(dto.changes())
    return jsonify(account), 201


@account_bp.route("/accounts/<int:account_id>", methods=["GET"])
def get_account(account_id):
    return jsonify(_repo().get(account_id))


@account_bp.route("/accounts/<int:account_id>", methods=["PUT"])
def update_account(account_id):
    dto = AccountInput.from_payload(json_body(), partial=True)
    return jsonify(_repo().update(account_id, dto.changes()))


@account_bp.route("/accounts/<int:account_id>", methods=["DELETE"])
def delete_account(account_id):
    _repo().delete(account_id)
    return jsonify({"message": "Account deleted successfully", "id": account_id})
