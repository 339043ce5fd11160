"""SMTP email sender - delivers rendered messages via async SMTP."""

import logging
from email.message import EmailMessage
from email.utils import formataddr
from typing import Optional

import aiosmtplib

from storefront_auth.app.services.email_sender import IEmailSender

logger = logging.getLogger(__name__)


class SmtpEmailSender(IEmailSender):
    """Sends transactional email through the configured SMTP server."""

    def __init__(
        self,
        host: str,
        port: int,
        from_address: str,
        from_name: str = "Storefront",
        username: Optional[str] = None,
        password: Optional[str] = None,
        start_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.from_address = from_address
        self.from_name = from_name
        self.username = username
        self.password = password
        self.start_tls = start_tls

    async def send(self, to: str, subject: str, html: str) -> bool:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name, self.from_address))
        msg["To"] = to
        msg.set_content("Please view this message in an HTML-capable email client.")
        msg.add_alternative(html, subtype="html")

        logger.info("Sending email to %s", to)

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.start_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Email delivery to %s failed: %s", to, e)
            return False

        logger.info("Email sent to %s", to)
        return True
