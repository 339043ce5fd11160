from abc import ABC, abstractmethod


class IEmailSender(ABC):
    """Outbound email transport"""

    @abstractmethod
    async def send(self, to: str, subject: str, html: str) -> bool:
        """
        Deliver a rendered message.

        Returns:
            True if the transport accepted the message. Implementations
            report transport failures as False instead of raising.
        """
        pass
