"""Sender that records the hand-off without contacting a provider."""
import logging
import uuid
from typing import Dict

from cryptosignals.senders import NotificationSender
from cryptosignals.senders.models import DeliveryResult

logger = logging.getLogger(__name__)


# Provider recorded per channel in the delivery log
CHANNEL_PROVIDERS = {
    "email": "sendgrid",
    "sms": "twilio",
    "telegram": "telegram_bot",
    "push": "firebase",
    "discord": "discord_webhook",
}


class DemoSender(NotificationSender):
    """Accepts every notification and returns a synthetic provider message id."""

    def __init__(self, channel: str):
        self.channel = channel
        self.provider = CHANNEL_PROVIDERS.get(channel, "unknown")

    async def send(self, channel: str, recipient: str, message: str, subject: str = None) -> DeliveryResult:
        message_id = f"{channel}_demo_{uuid.uuid4().hex[:12]}"
        logger.info(f"[demo] {channel} notification to {recipient} accepted as {message_id}")
        return DeliveryResult(success=True, message_id=message_id)


def default_senders() -> Dict[str, NotificationSender]:
    """One demo sender per supported channel."""
    return {channel: DemoSender(channel) for channel in CHANNEL_PROVIDERS}
