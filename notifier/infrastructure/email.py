"""Utility helpers for sending notification emails via SendGrid."""

from __future__ import annotations

import html
import json
import logging
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from notifier.config import get_settings
from notifier.domain.entities import Notification

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """Raised when SendGrid does not accept a notification email."""


def _sendgrid_error_details(body: Any) -> str | None:
    """Summarize a SendGrid error body, preferring its ``errors[].message`` entries."""

    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return body

    if isinstance(body, dict):
        messages = [
            str(entry["message"])
            for entry in body.get("errors") or []
            if isinstance(entry, dict) and entry.get("message")
        ]
        return "; ".join(messages) if messages else json.dumps(body, default=str)
    if isinstance(body, list):
        return "; ".join(str(entry) for entry in body)
    return None


def is_email_configured() -> bool:
    settings = get_settings()
    return bool(settings.sendgrid_api_key and settings.sendgrid_sender)


def send_email(subject: str, html_content: str, recipient: str) -> None:
    """Send an email using the configured SendGrid credentials.

    Raises :class:`EmailDeliveryError` when the message is not accepted.
    """

    settings = get_settings()
    if not is_email_configured():
        raise EmailDeliveryError("SendGrid configuration incomplete")

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
    )

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:
        details = _sendgrid_error_details(getattr(exc, "body", None))
        status_code = getattr(exc, "status_code", None)
        logger.error(
            "SendGrid API request failed with status %s: %s", status_code, details or exc
        )
        raise EmailDeliveryError(details or str(exc)) from exc

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        details = _sendgrid_error_details(getattr(response, "body", None))
        logger.error("SendGrid API responded with status %s: %s", status_code, details)
        raise EmailDeliveryError(f"SendGrid responded with status {status_code}")


def render_notification_email(notification: Notification) -> tuple[str, str]:
    """Return the subject and HTML body used to email ``notification``."""

    title = notification.metadata.get("mediaTitle") or "your content"
    subject = f"New activity on {title}"
    html_content = "".join(
        (
            "<p>Hello,</p>",
            f"<p>{html.escape(notification.message)}</p>",
            "<p>You can manage these emails from your notification preferences.</p>",
        )
    )
    return subject, html_content


def send_notification_email(notification: Notification) -> None:
    subject, html_content = render_notification_email(notification)
    send_email(subject, html_content, notification.user_email)


__all__ = [
    "EmailDeliveryError",
    "is_email_configured",
    "render_notification_email",
    "send_email",
    "send_notification_email",
]
