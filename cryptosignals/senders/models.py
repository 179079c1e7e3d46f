"""Data models for notification delivery results."""
from dataclasses import dataclass
from typing import Optional


@dataclass
class DeliveryResult:
    """Outcome of handing one notification to a provider."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
