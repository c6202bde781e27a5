"""
Release Planner
Email Service — release notifications and plain messages.

Provides email sending with a release notification template and recipient
validation.  When SMTP is not configured, emails are logged but not sent
(dev/test mode).

Recipient rules:
    - TO / CC / BCC accept a list or a string split on "," ";" or newlines
    - every address must be syntactically valid (email-validator)
    - the domain must be in EMAIL_ALLOWED_DOMAINS (empty list = any domain)
    - at least one recipient, at most EMAIL_MAX_RECIPIENTS across TO+CC+BCC

Configuration (env vars):
    MAIL_SERVER          SMTP host (default: None → log-only mode)
    MAIL_PORT            SMTP port (default: 25)
    MAIL_USE_TLS         STARTTLS (default: false)
    MAIL_USERNAME        SMTP username (optional)
    MAIL_PASSWORD        SMTP password (optional)
    MAIL_DEFAULT_SENDER  From address
    MAIL_SENDER_NAME     From display name
"""

from __future__ import annotations

import logging
import re
import smtplib
import socket
from datetime import datetime
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Any

from email_validator import EmailNotValidError, validate_email
from flask import current_app
from markupsafe import escape

from release_planner.core.exceptions import DeliveryError, ValidationError
from release_planner.utils.helpers import parse_date

logger = logging.getLogger(__name__)

_SPLIT_RE = re.compile(r"[,;\n]")


# ═══════════════════════════════════════════════════════════════════════════
#  Email Templates
# ═══════════════════════════════════════════════════════════════════════════

_TEMPLATES: dict[str, dict[str, str]] = {
    "release_notification": {
        "html": """
        <div style="font-family: Arial, Helvetica, sans-serif; max-width: 600px; margin: 0 auto;
                    border: 2px solid #0078d7; border-radius: 8px;">
            <div style="background: #0078d7; color: white; padding: 20px 24px; text-align: center;">
                <h1 style="margin: 0; font-size: 22px;">RELEASE NOTIFICATION</h1>
                <h2 style="margin: 8px 0 0; font-size: 16px; font-weight: normal;">{release_version}</h2>
            </div>
            <div style="background: #ffffff; padding: 24px;">
                <p style="color: #333333;">Dear <strong>Operations Team</strong>,</p>
                <p style="color: #333333;">Please find the release details below:</p>
                <table style="width: 100%; border-collapse: collapse; margin: 12px 0;">
                    {detail_rows}
                </table>
                {features_block}
                {notes_block}
                <p style="color: #333333;">
                    Please ensure all necessary preparations are completed before the scheduled release date.
                </p>
                <p style="color: #333333;">
                    For any questions or concerns, please contact the <strong>Release Management Team</strong>.
                </p>
            </div>
            <div style="background: #f8f9fa; padding: 12px 24px; text-align: center; border-top: 1px solid #dee2e6;">
                <p style="color: #666666; font-size: 12px; margin: 0;">
                    Release Management System | Generated on {generated_at}
                </p>
            </div>
        </div>
        """,
        "text": """RELEASE NOTIFICATION - {release_version}

Dear Operations Team,

Please find the release details below:

==============================================
RELEASE DETAILS
==============================================

{detail_lines}
{features_text}{notes_text}
Please ensure all necessary preparations are completed before the scheduled release date.

For any questions or concerns, please contact the Release Management Team.

==============================================
Release Management System | Generated on {generated_at}
==============================================""",
    },
    "plain": {
        "html": """
        <div style="font-family: Arial, Helvetica, sans-serif; max-width: 600px; margin: 0 auto;
                    background: #ffffff; padding: 20px; border-radius: 8px;">
            <pre style="font-family: Arial, Helvetica, sans-serif; white-space: pre-wrap; margin: 0;">{body}</pre>
        </div>
        """,
        "text": "{body}",
    },
}

STATUS_COLORS = {
    "Blocked": "#dc3545",
    "Completed": "#28a745",
    "In Progress": "#ffc107",
    "Scheduled": "#0078d7",
}


def _format_release_date(value) -> str:
    parsed = parse_date(value)
    if not parsed:
        return str(value or "Not Specified")
    return f"{parsed:%A}, {parsed:%B} {parsed.day}, {parsed.year}"


def render_release_email(release: dict) -> tuple[str, str]:
    """Render the release notification as ``(html, text)``."""
    status = release.get("status") or ""
    rows = [
        ("Release Version", release.get("release_version") or "Not Specified"),
        ("Account Name", release.get("account_name") or ""),
        ("Region", release.get("region") or "Not Specified"),
        ("Product / Environment",
         " / ".join(v for v in (release.get("product"), release.get("environment")) if v) or "Not Specified"),
        ("Release Date", _format_release_date(release.get("release_date"))),
        ("Executor", release.get("executor") or ""),
        ("Status", status.upper()),
    ]

    cell = "border: 1px solid #dee2e6; padding: 10px; font-size: 14px;"
    status_cell = f"{cell} font-weight: bold; color: {STATUS_COLORS.get(status, '#0078d7')};"
    detail_rows = "".join(
        f'<tr><td style="{cell} background: #f8f9fa; font-weight: bold; width: 40%;">{escape(label)}</td>'
        f'<td style="{status_cell if label == "Status" else cell}">{escape(value)}</td></tr>'
        for label, value in rows
    )
    detail_lines = "\n".join(f"{label}: {value}" for label, value in rows)

    features = release.get("features") or []
    features_block = ""
    features_text = ""
    if features:
        items = "".join(
            f"<li><strong>{escape(f.get('name', ''))}</strong>"
            f"{': ' + str(escape(f.get('description'))) if f.get('description') else ''}</li>"
            for f in features
        )
        features_block = f'<h3 style="color: #0078d7; font-size: 16px;">FEATURES</h3><ul>{items}</ul>'
        features_text = "\nFEATURES:\n" + "\n".join(
            f"- {f.get('name', '')}" + (f": {f.get('description')}" if f.get("description") else "")
            for f in features
        ) + "\n"

    notes = release.get("notes") or ""
    notes_block = ""
    notes_text = ""
    if notes:
        notes_block = (
            '<div style="background: #e9ecef; padding: 12px; border-left: 4px solid #0078d7;">'
            '<h3 style="margin: 0 0 8px; color: #0078d7; font-size: 16px;">NOTES</h3>'
            f'<p style="margin: 0; white-space: pre-wrap;">{escape(notes)}</p></div>'
        )
        notes_text = f"\nNOTES:\n{notes}\n"

    context = {
        "release_version": escape(release.get("release_version") or ""),
        "detail_rows": detail_rows,
        "features_block": features_block,
        "notes_block": notes_block,
        "generated_at": datetime.now().strftime("%Y-%m-%d %H:%M"),
    }
    template = _TEMPLATES["release_notification"]
    html = template["html"].format_map(_SafeDict(context))
    text = template["text"].format_map(_SafeDict({
        "release_version": release.get("release_version") or "",
        "detail_lines": detail_lines,
        "features_text": features_text,
        "notes_text": notes_text,
        "generated_at": context["generated_at"],
    }))
    return html, text


# ═══════════════════════════════════════════════════════════════════════════
#  Recipients
# ═══════════════════════════════════════════════════════════════════════════


def parse_recipients(value) -> list[str]:
    """Normalise a TO/CC/BCC value into a list of trimmed, non-empty strings."""
    if not value:
        return []
    if isinstance(value, str):
        parts = _SPLIT_RE.split(value)
    elif isinstance(value, (list, tuple)):
        parts = value
    else:
        return []
    return [str(p).strip() for p in parts if str(p).strip()]


def validate_recipients(addresses, allowed_domains=()) -> tuple[list[str], list[str]]:
    """Return ``(valid_addresses, errors)`` for a list of addresses."""
    allowed = {d.lower() for d in allowed_domains}
    valid, errors = [], []
    for address in addresses:
        address = address.strip()
        if not address:
            errors.append("Empty email address found")
            continue
        try:
            result = validate_email(address, check_deliverability=False)
        except EmailNotValidError:
            errors.append(f"Invalid email format: {address}")
            continue
        domain = result.domain.lower()
        if allowed and domain not in allowed:
            errors.append(f"Domain not allowed: {domain} ({address})")
            continue
        valid.append(result.normalized)
    return valid, errors


# ═══════════════════════════════════════════════════════════════════════════
#  Service
# ═══════════════════════════════════════════════════════════════════════════


class EmailService:
    """
    Email sending service with a release template.

    In development/test mode (no MAIL_SERVER configured), emails are
    logged but not sent.
    """

    @staticmethod
    def is_configured() -> bool:
        """Check if SMTP is configured."""
        return bool(current_app.config.get("MAIL_SERVER"))

    @staticmethod
    def resolve_recipients(to, cc=None, bcc=None) -> dict[str, list[str]]:
        """Parse and validate TO/CC/BCC; raises ValidationError on any problem."""
        cfg = current_app.config
        allowed = cfg.get("EMAIL_ALLOWED_DOMAINS") or ()
        max_recipients = cfg.get("EMAIL_MAX_RECIPIENTS", 50)

        resolved, errors = {}, []
        for kind, value in (("to", to), ("cc", cc), ("bcc", bcc)):
            valid, kind_errors = validate_recipients(parse_recipients(value), allowed)
            resolved[kind] = valid
            prefix = "" if kind == "to" else f"{kind.upper()}: "
            errors.extend(prefix + e for e in kind_errors)

        if errors:
            raise ValidationError(
                f"Email validation failed: {'; '.join(errors)}",
                details={"recipients": errors},
            )
        if not resolved["to"]:
            raise ValidationError("At least one TO recipient is required", details={"to": "is required"})

        total = sum(len(v) for v in resolved.values())
        if total > max_recipients:
            raise ValidationError(
                f"Total recipients ({total}) exceeds maximum allowed ({max_recipients})",
                details={"recipient_count": total, "max_recipients": max_recipients},
            )
        return resolved

    @classmethod
    def send(
        cls,
        *,
        to,
        subject: str,
        html_body: str,
        text_body: str,
        cc=None,
        bcc=None,
        release_id: Any = None,
        template_name: str = "plain",
    ) -> dict:
        """
        Validate recipients, build the message and hand it to SMTP.

        Returns:
            {"success", "messageId", "recipients": {to, cc, bcc},
             "recipientCount": {to, cc, bcc, total}}
        """
        if not isinstance(subject, str) or not subject.strip():
            raise ValidationError("subject is required", details={"subject": "is required"})

        recipients = cls.resolve_recipients(to, cc, bcc)
        cfg = current_app.config
        sender = cfg.get("MAIL_DEFAULT_SENDER") or "release-management@localhost"
        sender_domain = sender.rsplit("@", 1)[-1]

        msg = EmailMessage()
        msg["Subject"] = subject.strip()
        msg["From"] = formataddr((cfg.get("MAIL_SENDER_NAME") or "Release Management System", sender))
        msg["To"] = ", ".join(recipients["to"])
        if recipients["cc"]:
            msg["Cc"] = ", ".join(recipients["cc"])
        msg["Message-ID"] = make_msgid(domain=sender_domain)
        msg["X-Release-ID"] = str(release_id if release_id is not None else "unknown")
        msg["X-Mailer"] = "Release Management System"
        msg.set_content(text_body)
        msg.add_alternative(html_body, subtype="html")

        counts = {kind: len(addrs) for kind, addrs in recipients.items()}
        counts["total"] = sum(counts.values())
        log_extra = {"release_id": release_id, "template": template_name, "recipient_count": counts["total"]}

        if not cls.is_configured():
            # Dev/test mode: log only
            logger.info(
                "Email (dev mode): to=%s cc=%s bcc=%d subject='%s' template=%s",
                recipients["to"], recipients["cc"], counts["bcc"], subject, template_name,
                extra=log_extra,
            )
        else:
            all_addresses = recipients["to"] + recipients["cc"] + recipients["bcc"]
            cls._send_smtp(msg, all_addresses)
            logger.info(
                "Email sent: recipients=%d subject='%s' template=%s message_id=%s",
                counts["total"], subject, template_name, msg["Message-ID"],
                extra=log_extra,
            )

        return {
            "success": True,
            "messageId": msg["Message-ID"],
            "recipients": recipients,
            "recipientCount": counts,
        }

    @classmethod
    def send_release_notification(cls, *, to, subject: str, release_data: dict, cc=None, bcc=None) -> dict:
        """Send the release template for a fully-resolved release payload."""
        html_body, text_body = render_release_email(release_data)
        return cls.send(
            to=to, cc=cc, bcc=bcc,
            subject=subject,
            html_body=html_body,
            text_body=text_body,
            release_id=release_data.get("id"),
            template_name="release_notification",
        )

    @classmethod
    def send_text(cls, *, to, subject: str, body: str, cc=None, bcc=None, release_id=None) -> dict:
        """Send a free-text message wrapped in the plain HTML layout."""
        template = _TEMPLATES["plain"]
        return cls.send(
            to=to, cc=cc, bcc=bcc,
            subject=subject,
            html_body=template["html"].format_map(_SafeDict({"body": escape(body)})),
            text_body=body,
            release_id=release_id,
            template_name="plain",
        )

    @staticmethod
    def _send_smtp(msg: EmailMessage, recipients: list[str]) -> None:
        """Actually send via SMTP, translating failures into DeliveryError."""
        cfg = current_app.config
        server = cfg.get("MAIL_SERVER")
        port = cfg.get("MAIL_PORT", 25)
        use_tls = cfg.get("MAIL_USE_TLS", False)
        username = cfg.get("MAIL_USERNAME")
        password = cfg.get("MAIL_PASSWORD")

        try:
            with smtplib.SMTP(server, port, timeout=30) as smtp:
                if use_tls:
                    smtp.starttls()
                if username and password:
                    smtp.login(username, password)
                smtp.send_message(msg, to_addrs=recipients)
        except smtplib.SMTPRecipientsRefused as exc:
            logger.error("Email rejected: recipients refused %s", list(exc.recipients))
            raise DeliveryError(
                "Email rejected by server. Please check recipient addresses.", status_code=400,
            ) from exc
        except smtplib.SMTPResponseException as exc:
            logger.error("Email failed: SMTP %s %s", exc.smtp_code, exc.smtp_error)
            if exc.smtp_code >= 500:
                raise DeliveryError(
                    "SMTP server error. Please try again later.",
                    status_code=502, smtp_code=exc.smtp_code,
                ) from exc
            raise DeliveryError(
                "Email rejected by server. Please check recipient addresses.",
                status_code=400, smtp_code=exc.smtp_code,
            ) from exc
        except ConnectionRefusedError as exc:
            logger.error("Email failed: connection refused by %s:%s", server, port)
            raise DeliveryError(
                f"Cannot connect to SMTP server {server}:{port}. Please check network connectivity.",
                status_code=503,
            ) from exc
        except socket.gaierror as exc:
            logger.error("Email failed: cannot resolve %s (%s)", server, exc)
            raise DeliveryError(
                f"SMTP server {server} not found. Please check DNS resolution.", status_code=503,
            ) from exc
        except (socket.timeout, TimeoutError) as exc:
            logger.error("Email failed: timeout talking to %s:%s", server, port)
            raise DeliveryError(
                "SMTP connection timed out. Please check network connectivity.", status_code=504,
            ) from exc
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email failed: %s", exc)
            raise DeliveryError(f"Failed to send email: {exc}", status_code=502) from exc


class _SafeDict(dict):
    """Dict that returns {key} for missing keys instead of raising."""

    def __missing__(self, key):
        return f"{{{key}}}"
