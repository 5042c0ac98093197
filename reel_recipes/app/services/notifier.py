"""Best-effort email notification for newly published recipes.

``notify_published`` is meant to be scheduled, not awaited, by the request
that published the recipe: it never raises, never retries, and gives up after
MAIL_TIMEOUT_SECONDS so a slow relay can't hold on to resources.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from reel_recipes.app.core.config import get_settings

logger = logging.getLogger(__name__)

SUBJECT = "New treat added!"


def build_message(title: str) -> EmailMessage:
    settings = get_settings()
    message = EmailMessage()
    message["Subject"] = SUBJECT
    message["From"] = settings.from_mail
    message["To"] = settings.to_mail
    message.set_content(f"{title} is now on treats.")
    return message


def send_email_notification(title: str) -> None:
    settings = get_settings()
    message = build_message(title)
    with smtplib.SMTP_SSL(
        settings.mail_host, settings.mail_port, timeout=settings.mail_timeout_seconds
    ) as server:
        if settings.mail_user:
            server.login(settings.mail_user, settings.mail_password or "")
        server.send_message(message)


async def notify_published(title: str) -> bool:
    """Send the notification mail; returns whether it was delivered."""
    settings = get_settings()
    if not settings.mail_configured:
        logger.info("Mail is not configured; skipping notification for %s", title)
        return False
    try:
        await asyncio.wait_for(
            asyncio.to_thread(send_email_notification, title),
            timeout=settings.mail_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.error("Sending mail for %s timed out after %ss", title, settings.mail_timeout_seconds)
        return False
    except Exception:  # noqa: BLE001
        logger.exception("Error sending mail for %s", title)
        return False
    logger.info("Notification sent for %s", title)
    return True
