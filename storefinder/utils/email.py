"""
Email Utility

Helper functions for rendering and sending emails.
"""

import asyncio
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from pathlib import Path
from typing import Any, List
import logging

from jinja2 import Environment, FileSystemLoader, select_autoescape

from storefinder.core.config import settings

logger = logging.getLogger(__name__)

EMAIL_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

_email_env = Environment(
    loader=FileSystemLoader(str(EMAIL_TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


def render_email(filename: str, **context: Any) -> str:
    """
    Render the HTML body of an email from templates/email/{filename}.html.
    """
    template = _email_env.get_template(f"{filename}.html")
    return template.render(project_name=settings.PROJECT_NAME, **context)


def send_email(
    recipients: List[str],
    subject: str,
    content: str,
    content_type: str = "plain"
) -> bool:
    """
    Send an email using SMTP settings from config.

    Args:
        recipients: List of email addresses
        subject: Email subject
        content: Email body
        content_type: "plain" or "html"

    Returns:
        True if successful, False otherwise
    """
    if not settings.SMTP_SERVER or not settings.SMTP_EMAIL:
        logger.warning(f"SMTP settings not configured. Email '{subject}' to {recipients} not sent.")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.SMTP_EMAIL
        msg["To"] = ", ".join(recipients)

        part = MIMEText(content, content_type)
        msg.attach(part)

        # Connect to SMTP server
        port = int(settings.SMTP_PORT) if settings.SMTP_PORT else 587

        with smtplib.SMTP(settings.SMTP_SERVER, port) as server:
            server.starttls()
            if settings.SMTP_PASSWORD:
                server.login(settings.SMTP_EMAIL, settings.SMTP_PASSWORD)
            server.send_message(msg)

        logger.info(f"Email sent to {recipients}")
        return True

    except (smtplib.SMTPException, OSError) as e:
        # Failures are logged, never retried
        logger.error(f"Failed to send email: {str(e)}")
        return False


async def send(recipient: str, subject: str, filename: str, **context: Any) -> bool:
    """
    Render templates/email/{filename}.html and send it without blocking
    the event loop.
    """
    html = render_email(filename, **context)
    return await asyncio.to_thread(send_email, [recipient], subject, html, "html")


async def send_password_reset_email(email: str, name: str, reset_url: str) -> bool:
    """
    Send the password reset link.

    Args:
        email: User email address
        name: User display name
        reset_url: Absolute URL embedding the reset token

    Returns:
        True if email sent successfully, False otherwise
    """
    return await send(
        email,
        subject="Password Reset",
        filename="password-reset",
        name=name,
        reset_url=reset_url,
        expires_in_minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES,
    )
