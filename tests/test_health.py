"""
Release Planner
Tests — health checks, middleware headers and error envelopes.
"""

import os

import pytest

from release_planner.config import ProductionConfig
from release_planner.core import exceptions
from release_planner.utils.errors import _DEFAULT_STATUS, E


class TestHealth:
    def test_health(self, client):
        res = client.get("/api/health")
        assert res.status_code == 200
        assert res.get_json()["status"] == "ok"

    def test_ready(self, client):
        assert client.get("/api/health/ready").status_code == 200

    def test_live(self, client):
        res = client.get("/api/health/live")
        assert res.status_code == 200
        checks = res.get_json()["checks"]
        assert checks["data_dir"]["status"] == "ok"
        assert checks["releases"]["status"] == "ok"
        assert checks["app"]["smtp_configured"] is False

    def test_live_reports_missing_collection(self, client, store):
        os.remove(store.path_for("accounts"))
        checks = client.get("/api/health/live").get_json()["checks"]
        assert checks["accounts"]["status"] == "missing"
        assert checks["accounts"]["records"] == 0


class TestMiddleware:
    def test_request_id_echoed(self, client):
        res = client.get("/api/stats", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"
        assert "X-Request-Duration-Ms" in res.headers

    def test_security_headers(self, client):
        res = client.get("/api/health")
        assert res.headers["X-Content-Type-Options"] == "nosniff"
        assert res.headers["X-Frame-Options"] == "DENY"

    def test_unknown_route(self, client):
        res = client.get("/api/nope")
        assert res.status_code == 404
        body = res.get_json()
        assert body["code"] == "ERR_NOT_FOUND"
        assert body["details"] == {"path": "/api/nope"}

    def test_storage_failure_is_500(self, client, store, monkeypatch):
        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr("release_planner.store.tempfile.mkstemp", fail)
        res = client.post("/api/accounts", json={"name": "acme"})
        assert res.status_code == 500
        assert res.get_json()["code"] == "ERR_STORAGE"


class TestConfig:
    def test_production_requires_data_dir(self, monkeypatch):
        monkeypatch.delenv("DATA_DIR", raising=False)
        monkeypatch.setenv("SECRET_KEY", "x")
        with pytest.raises(RuntimeError, match="DATA_DIR"):
            ProductionConfig()

    def test_testing_defaults(self, app):
        assert app.config["TESTING"] is True
        assert app.config["MAIL_SERVER"] is None
        assert app.config["EMAIL_ALLOWED_DOMAINS"] == ["example.com", "example.org"]


class TestErrorCodes:
    @pytest.mark.parametrize("error_cls", [
        exceptions.ReleasePlannerError, exceptions.ValidationError, exceptions.DuplicateNameError,
        exceptions.NotFoundError, exceptions.InUseError, exceptions.StorageError, exceptions.DeliveryError,
    ])
    def test_exception_codes_come_from_constants(self, error_cls):
        assert error_cls.code in _DEFAULT_STATUS
        assert error_cls.code in vars(E).values()

    def test_in_use_status_matches_table(self):
        assert exceptions.InUseError.status_code == _DEFAULT_STATUS[E.CONFLICT_IN_USE]
