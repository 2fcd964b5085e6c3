"""
SMTP transport for outbound email.

This is the messaging collaborator: it takes a recipient, a subject and a
rendered HTML body and hands them to the SMTP server. It knows nothing
about retries; the notification outbox (notification_service) decides
when to call it and records the outcome.

Usage:
    from sitewizard.services.email_service import send_email

    send_email(to="user@example.com", subject="Hello", html_body="<p>Hi</p>")
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from flask import current_app

logger = logging.getLogger(__name__)


class EmailNotConfigured(RuntimeError):
    """MAIL_USERNAME / MAIL_PASSWORD are missing."""


def _build_message(to, subject, html_body, reply_to=None):
    config = current_app.config
    from_name = config.get("MAIL_FROM_NAME", "SiteWizard.pro")
    from_email = config.get("MAIL_FROM_ADDRESS") or config.get("MAIL_USERNAME") or ""

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{from_name} <{from_email}>"
    msg["To"] = to if isinstance(to, str) else ", ".join(to)

    if reply_to:
        msg["Reply-To"] = reply_to

    msg.attach(MIMEText(html_body, "html"))
    return msg


def send_email(to, subject, html_body, reply_to=None):
    """Send one HTML email synchronously.

    Raises:
        EmailNotConfigured: SMTP credentials are not set.
        smtplib.SMTPException / OSError: the SMTP exchange failed.
    """
    config = current_app.config
    host = config.get("MAIL_SMTP_HOST", "smtp.gmail.com")
    port = config.get("MAIL_SMTP_PORT", 587)
    username = config.get("MAIL_USERNAME")
    password = config.get("MAIL_PASSWORD")

    if not username or not password:
        logger.warning("Email not sent — MAIL_USERNAME or MAIL_PASSWORD not configured.")
        raise EmailNotConfigured("Mail transport is not configured")

    msg = _build_message(to, subject, html_body, reply_to=reply_to)

    with smtplib.SMTP(host, port, timeout=30) as server:
        server.ehlo()
        server.starttls()
        server.ehlo()
        server.login(username, password)
        server.send_message(msg)
    logger.info(f"Email sent to {msg['To']} — {msg['Subject']}")
