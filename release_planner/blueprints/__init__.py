"""
Release Planner
Blueprint registry and shared request helpers.
"""

from flask import current_app, request


def get_store():
    """The RecordStore built by create_app() for this application."""
    return current_app.extensions["record_store"]


def json_body():
    """Decoded JSON body, or ``{}`` when the request carries none.

    Non-object bodies are passed through so the DTOs can reject them.
    """
    data = request.get_json(silent=True)
    return {} if data is None else data
