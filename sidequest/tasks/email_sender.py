"""Outbound email over SMTP.

Every send reports a DeliveryStatus so callers can keep a delivery log:
skipped when no SMTP host is configured (local development, tests), sent on
success, failed when the mail server could not be reached or refused the message.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from sidequest.config import settings
from sidequest.models.notification_log import DeliveryStatus

logger = logging.getLogger(__name__)


def build_message(to: str, subject: str, body: str, html: str | None = None) -> EmailMessage:
    message = EmailMessage()
    message["From"] = settings.smtp_from
    message["To"] = to
    message["Subject"] = subject
    message.set_content(body)
    if html:
        message.add_alternative(html, subtype="html")
    return message


def _deliver_sync(message: EmailMessage) -> DeliveryStatus:
    """Blocking SMTP session; run it in an executor."""
    if not settings.smtp_host:
        logger.warning("smtp_host is empty; not sending %r to %s", message["Subject"], message["To"])
        return DeliveryStatus.skipped

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as server:
        server.starttls()
        if settings.smtp_user:
            server.login(settings.smtp_user, settings.smtp_password)
        server.send_message(message)

    logger.info("Sent %r to %s", message["Subject"], message["To"])
    return DeliveryStatus.sent


async def send_email(to: str, subject: str, body: str, html: str | None = None) -> DeliveryStatus:
    """Send without blocking the event loop. Mail-server errors come back as failed."""
    message = build_message(to, subject, body, html)
    try:
        return await asyncio.get_running_loop().run_in_executor(None, _deliver_sync, message)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Email %r to %s failed: %s", subject, to, exc)
        return DeliveryStatus.failed
