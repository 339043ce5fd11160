import logging
import re

from storefront_auth.app.services.email_sender import IEmailSender

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r"<[^>]+>")


class ConsoleEmailSender(IEmailSender):
    """Development transport: writes messages to the log instead of sending them"""

    async def send(self, to: str, subject: str, html: str) -> bool:
        text = " ".join(TAG_PATTERN.sub(" ", html).split())
        logger.info(f"Email to={to} subject={subject!r}: {text}")
        return True
