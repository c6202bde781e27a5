"""
Shared pytest fixtures for the Release Planner test suite.

Provides:
    - app: Flask application (session-scoped)
    - store: fresh RecordStore on tmp_path, swapped into the app (autouse)
    - client: Flask test client (function-scoped)
    - account / release_version: pre-created records for release tests
"""

import pytest

from release_planner import create_app
from release_planner.store import RecordStore


# ── App & store fixtures ─────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app(tmp_path_factory):
    """Create the Flask application once per test session."""
    application = create_app("testing", DATA_DIR=str(tmp_path_factory.mktemp("data")))
    return application


@pytest.fixture(autouse=True)
def store(app, tmp_path):
    """Point the application at an empty data directory for every test."""
    original = app.extensions["record_store"]
    record_store = RecordStore(tmp_path / "data")
    record_store.initialize()
    app.extensions["record_store"] = record_store
    with app.app_context():
        yield record_store
    app.extensions["record_store"] = original


@pytest.fixture
def client(app):
    return app.test_client()


# ── Entity fixtures ──────────────────────────────────────────────────────


@pytest.fixture
def account(client):
    res = client.post("/api/accounts", json={"name": "Acme Telecom", "region": "EMEA", "products": ["Monitoring"]})
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture
def release_version(client):
    res = client.post("/api/releaseVersions", json={
        "name": "r25.09",
        "description": "September train",
        "features": [{"id": 1, "name": "Alert dedup", "description": "Collapse repeats"}],
    })
    assert res.status_code == 201
    return res.get_json()
