"""Abstract interface for notification channel senders."""
from abc import ABC, abstractmethod
from cryptosignals.senders.models import DeliveryResult


class NotificationSender(ABC):
    """Abstract base class for channel senders."""

    #: Provider name recorded in the delivery log
    provider: str = "unknown"

    @abstractmethod
    async def send(self, channel: str, recipient: str, message: str, subject: str = None) -> DeliveryResult:
        """
        Hand a notification to the channel provider.

        Args:
            channel: Queue channel (email, sms, telegram, push, discord)
            recipient: Channel-specific address
            message: Message body
            subject: Optional subject line

        Returns:
            DeliveryResult describing the outcome

        Raises:
            SenderError: If the provider rejects the notification
        """
        pass


class SenderError(Exception):
    """Exception raised when a provider rejects a notification."""
    pass
