"""
Outbound e-mail over SMTP.
"""

import logging
from email.mime.text import MIMEText

import aiosmtplib

from config import settings

logger = logging.getLogger(__name__)


async def send_email(email: str, subject: str, message: str) -> None:
    """
    Send a plain-text e-mail.

    Raises:
        aiosmtplib.SMTPException: when the SMTP server rejects or drops the message
    """
    mime = MIMEText(message, "plain", "utf-8")
    mime["From"] = settings.EMAIL_FROM
    mime["To"] = email
    mime["Subject"] = subject

    await aiosmtplib.send(
        mime,
        hostname=settings.EMAIL_HOST,
        port=settings.EMAIL_PORT,
        username=settings.EMAIL_USERNAME,
        password=settings.EMAIL_PASSWORD,
    )
    logger.info("Sent '%s' to %s", subject, email)
