"""Release notification — resolve a release into an email-ready payload and send it.

The gateway (EmailService) only renders and dispatches; this module joins the
release with its Account region and ReleaseVersion features first, so the
email always reflects stored data rather than whatever the client sent.
"""
import logging

from release_planner.services.email_service import EmailService
from release_planner.services.repositories import (
    AccountRepository,
    ReleaseRepository,
    ReleaseVersionRepository,
)

logger = logging.getLogger(__name__)


def build_release_payload(store, release_id):
    """Release record enriched with ``region``, ``features`` and ``release_version_description``.

    Raises NotFoundError when the release does not exist.  A dangling account
    or version reference leaves the joined fields empty.
    """
    release = ReleaseRepository(store).get(release_id)
    account = AccountRepository(store).get_by_name(release.get("account_name")) or {}
    version = ReleaseVersionRepository(store).get_by_name(release.get("release_version")) or {}

    return {
        **release,
        "region": account.get("region") or "",
        "products": account.get("products") or [],
        "features": version.get("features") or [],
        "release_version_description": version.get("description") or "",
    }


def default_subject(release):
    return (
        f"Release Notification: {release.get('release_version') or 'Release'} "
        f"- {release.get('account_name', '')} ({release.get('status', '')})"
    )


def notify_release(store, release_id, *, to, cc=None, bcc=None, subject=None):
    """Send the release template for a stored release; returns the gateway result."""
    payload = build_release_payload(store, release_id)
    result = EmailService.send_release_notification(
        to=to, cc=cc, bcc=bcc,
        subject=subject or default_subject(payload),
        release_data=payload,
    )
    logger.info(
        "Release notification sent: release=%s recipients=%d",
        release_id, result["recipientCount"]["total"],
        extra={
            "release_id": release_id,
            "account_name": payload.get("account_name"),
            "recipient_count": result["recipientCount"]["total"],
        },
    )
    return result
