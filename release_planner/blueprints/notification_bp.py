"""
Release Planner
Notification blueprint — release emails through the SMTP gateway.

Endpoints:
    POST /api/releases/<id>/notify   release template for a stored release
                                     body: {to, cc?, bcc?, subject?}
    POST /api/send-email             free text, or the release template when
                                     useTemplate and releaseData are given
                                     body: {to, cc?, bcc?, subject, body,
                                            releaseId?, useTemplate?, releaseData?}
    POST /api/email/test             configuration check
                                     body: {to, cc?, bcc?}

Recipients may be a list or a string separated by "," ";" or newlines.
"""

import logging
import platform
from datetime import datetime

from flask import Blueprint, current_app, jsonify

from release_planner.blueprints import get_store, json_body
from release_planner.core.exceptions import ValidationError
from release_planner.services.email_service import EmailService, parse_recipients
from release_planner.services.release_notification import notify_release

logger = logging.getLogger(__name__)

notification_bp = Blueprint("notification", __name__, url_prefix="/api")


def _summary(result, prefix="Email sent successfully"):
    counts = result["recipientCount"]
    return {
        **result,
        "message": (
            f"{prefix} to {counts['total']} total recipients "
            f"({counts['to']} TO, {counts['cc']} CC, {counts['bcc']} BCC)"
        ),
    }


# releaseData fields the release template renders as text
TEMPLATE_TEXT_FIELDS = (
    "release_version", "account_name", "region", "product", "environment",
    "release_date", "executor", "status", "notes",
)


def _require_object(data):
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _check_release_data(release_data):
    errors = {
        key: "must be a string"
        for key in TEMPLATE_TEXT_FIELDS
        if release_data.get(key) is not None and not isinstance(release_data[key], str)
    }
    features = release_data.get("features")
    if features is not None:
        if not isinstance(features, list):
            errors["features"] = "must be a list"
        else:
            for index, feature in enumerate(features):
                if not isinstance(feature, dict) or not all(
                    feature.get(key) is None or isinstance(feature[key], str)
                    for key in ("name", "description")
                ):
                    errors[f"features.{index}"] = "must be an object with string name and description"
    if errors:
        raise ValidationError("Invalid releaseData", details={f"releaseData.{k}": v for k, v in errors.items()})


@notification_bp.route("/releases/<int:release_id>/notify", methods=["POST"])
def notify(release_id):
    data = _require_object(json_body())
    result = notify_release(
        get_store(), release_id,
        to=data.get("to"), cc=data.get("cc"), bcc=data.get("bcc"),
        subject=data.get("subject"),
    )
    return jsonify(_summary(result))


@notification_bp.route("/send-email", methods=["POST"])
def send_email():
    data = _require_object(json_body())
    missing = [key for key in ("to", "subject", "body") if not data.get(key)]
    if missing:
        raise ValidationError(
            "Missing required email fields",
            details={key: "is required" for key in missing},
        )
    wrong_type = [key for key in ("subject", "body") if not isinstance(data[key], str)]
    if wrong_type:
        raise ValidationError(
            "Email fields must be strings",
            details={key: "must be a string" for key in wrong_type},
        )

    release_data = data.get("releaseData")
    if data.get("useTemplate") and isinstance(release_data, dict):
        _check_release_data(release_data)
        result = EmailService.send_release_notification(
            to=data["to"], cc=data.get("cc"), bcc=data.get("bcc"),
            subject=data["subject"], release_data=release_data,
        )
    else:
        result = EmailService.send_text(
            to=data["to"], cc=data.get("cc"), bcc=data.get("bcc"),
            subject=data["subject"], body=data["body"],
            release_id=data.get("releaseId"),
        )
    return jsonify(_summary(result))


@notification_bp.route("/email/test", methods=["POST"])
def send_test_email():
    data = _require_object(json_body())
    if not data.get("to"):
        raise ValidationError("TO recipient email address(es) required", details={"to": "is required"})

    cfg = current_app.config
    to, cc, bcc = (parse_recipients(data.get(k)) for k in ("to", "cc", "bcc"))
    body = "\n".join([
        f"This is a test email sent at {datetime.now():%Y-%m-%d %H:%M:%S}.",
        "",
        "If you received this email, the email configuration is working correctly.",
        "",
        f"- TO Recipients: {len(to)}",
        f"- CC Recipients: {len(cc)}",
        f"- BCC Recipients: {len(bcc)}",
        "",
        f"- Platform: {platform.system()} / Python {platform.python_version()}",
        f"- SMTP Server: {cfg.get('MAIL_SERVER') or '(not configured, log only)'}:{cfg.get('MAIL_PORT')}",
        f"- From Email: {cfg.get('MAIL_DEFAULT_SENDER')}",
        f"- Maximum Recipients: {cfg.get('EMAIL_MAX_RECIPIENTS')}",
        f"- Allowed Domains: {', '.join(cfg.get('EMAIL_ALLOWED_DOMAINS') or []) or 'any'}",
        "",
        "Best regards,",
        "Release Management System",
    ])
    result = EmailService.send_text(
        to=to, cc=cc, bcc=bcc,
        subject="Test Email from Release Management System",
        body=body,
        release_id="test",
    )
    return jsonify(_summary(result, prefix="Test email sent successfully"))
