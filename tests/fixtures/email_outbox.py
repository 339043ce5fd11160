import re
from typing import List, NamedTuple, Optional

from storefront_auth.app.services.email_sender import IEmailSender

CODE_IN_HTML = re.compile(r">(\d{6})<")


class SentEmail(NamedTuple):
    to: str
    subject: str
    html: str


class EmailOutbox(IEmailSender):
    """Email sender that keeps messages in memory instead of delivering them"""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent: List[SentEmail] = []

    async def send(self, to: str, subject: str, html: str) -> bool:
        if not self.deliver:
            return False
        self.sent.append(SentEmail(to, subject, html))
        return True

    def last_code(self, to: str) -> Optional[str]:
        for message in reversed(self.sent):
            if message.to == to:
                match = CODE_IN_HTML.search(message.html)
                return match.group(1) if match else None
        return None
