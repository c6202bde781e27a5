"""
Release Planner
Tests — notification endpoints (release notify, free-text send, test email).

SMTP is not configured in testing, so sends are logged only; the SMTP path
is covered in test_email_service.py.
"""

import pytest

from release_planner.services import email_service
from release_planner.services.release_notification import build_release_payload, default_subject


@pytest.fixture
def release(client, account, release_version):
    res = client.post("/api/releases", json={
        "account_name": "ACME TELECOM", "release_version": "R25.09",
        "product": "Monitoring", "environment": "PROD",
        "release_date": "2030-01-15", "executor": "j.doe", "notes": "Window 22:00 UTC",
    })
    assert res.status_code == 201
    return res.get_json()


class TestReleaseNotify:
    def test_notify(self, client, release):
        res = client.post(f"/api/releases/{release['id']}/notify", json={
            "to": "ops@example.com; lead@example.com", "cc": ["mgr@example.org"],
        })
        assert res.status_code == 200
        data = res.get_json()
        assert data["success"] is True
        assert data["recipientCount"] == {"to": 2, "cc": 1, "bcc": 0, "total": 3}
        assert data["message"].startswith("Email sent successfully to 3 total recipients")

    def test_notify_renders_stored_data(self, client, release, monkeypatch):
        captured = {}

        def fake_send(**kwargs):
            captured.update(kwargs)
            return {"success": True, "messageId": "<x@localhost>", "recipients": {},
                    "recipientCount": {"to": 1, "cc": 0, "bcc": 0, "total": 1}}

        monkeypatch.setattr(email_service.EmailService, "send", staticmethod(fake_send))
        client.post(f"/api/releases/{release['id']}/notify", json={"to": "ops@example.com"})
        assert captured["template_name"] == "release_notification"
        assert captured["release_id"] == release["id"]
        assert captured["subject"] == "Release Notification: R25.09 - ACME TELECOM (Scheduled)"
        assert "Region: EMEA" in captured["text_body"]
        assert "Alert dedup" in captured["text_body"]

    def test_notify_unknown_release(self, client):
        res = client.post("/api/releases/999/notify", json={"to": "ops@example.com"})
        assert res.status_code == 404

    def test_notify_bad_recipient(self, client, release):
        res = client.post(f"/api/releases/{release['id']}/notify", json={"to": "ops@elsewhere.net"})
        assert res.status_code == 400
        assert "Domain not allowed" in res.get_json()["error"]

    def test_build_release_payload(self, store, release):
        payload = build_release_payload(store, release["id"])
        assert payload["region"] == "EMEA"
        assert payload["products"] == ["Monitoring"]
        assert payload["features"][0]["name"] == "Alert dedup"
        assert payload["release_version_description"] == "September train"
        assert default_subject(payload).startswith("Release Notification: R25.09")


class TestSendEmail:
    def test_plain_text(self, client):
        res = client.post("/api/send-email", json={
            "to": "ops@example.com", "subject": "Heads up", "body": "Deploy tonight",
        })
        assert res.status_code == 200
        assert res.get_json()["recipientCount"]["total"] == 1

    def test_with_template(self, client):
        res = client.post("/api/send-email", json={
            "to": "ops@example.com", "subject": "Release", "body": "x",
            "useTemplate": True, "releaseData": {"id": 1, "account_name": "ACME"},
        })
        assert res.status_code == 200

    def test_missing_fields(self, client):
        res = client.post("/api/send-email", json={"to": "ops@example.com"})
        assert res.status_code == 400
        assert set(res.get_json()["details"]) == {"subject", "body"}

    @pytest.mark.parametrize("field,value", [("subject", 5), ("body", ["x"]), ("subject", {"a": 1})])
    def test_non_string_fields(self, client, field, value):
        payload = {"to": "ops@example.com", "subject": "s", "body": "b", field: value}
        res = client.post("/api/send-email", json=payload)
        assert res.status_code == 400
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_INVALID"
        assert body["details"] == {field: "must be a string"}

    @pytest.mark.parametrize("release_data,key", [
        ({"status": 5}, "releaseData.status"),
        ({"account_name": ["ACME"]}, "releaseData.account_name"),
        ({"features": "Alert dedup"}, "releaseData.features"),
        ({"features": [{"name": 3}]}, "releaseData.features.0"),
    ])
    def test_template_data_must_be_text(self, client, release_data, key):
        res = client.post("/api/send-email", json={
            "to": "ops@example.com", "subject": "Release", "body": "x",
            "useTemplate": True, "releaseData": release_data,
        })
        assert res.status_code == 400
        assert key in res.get_json()["details"]

    def test_too_many_recipients(self, client):
        to = ",".join(f"user{i}@example.com" for i in range(51))
        res = client.post("/api/send-email", json={"to": to, "subject": "s", "body": "b"})
        assert res.status_code == 400
        assert res.get_json()["details"]["recipient_count"] == 51

    def test_invalid_cc(self, client):
        res = client.post("/api/send-email", json={
            "to": "ops@example.com", "cc": "not-an-address", "subject": "s", "body": "b",
        })
        assert res.status_code == 400
        assert res.get_json()["details"]["recipients"] == ["CC: Invalid email format: not-an-address"]

    def test_delivery_error_status(self, client, monkeypatch):
        from release_planner.core.exceptions import DeliveryError

        def refuse(*args, **kwargs):
            raise DeliveryError("Cannot connect to SMTP server", status_code=503)

        monkeypatch.setattr(email_service.EmailService, "send", staticmethod(refuse))
        res = client.post("/api/send-email", json={"to": "ops@example.com", "subject": "s", "body": "b"})
        assert res.status_code == 503
        assert res.get_json()["code"] == "ERR_DELIVERY"


class TestTestEmail:
    def test_send(self, client):
        res = client.post("/api/email/test", json={"to": "ops@example.com", "bcc": "audit@example.org"})
        assert res.status_code == 200
        data = res.get_json()
        assert data["message"].startswith("Test email sent successfully")
        assert data["recipientCount"]["bcc"] == 1

    def test_to_required(self, client):
        assert client.post("/api/email/test", json={}).status_code == 400
