"""Notification queue and delivery log models."""
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey
from datetime import datetime, timezone
import uuid
from cryptosignals.core.database import Base


NOTIFICATION_CHANNELS = ("email", "sms", "telegram", "push", "discord")
NOTIFICATION_STATUSES = ("pending", "processing", "sent", "failed", "cancelled")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationQueueItem(Base):
    """A notification waiting to be handed to a channel sender."""

    __tablename__ = "notification_queue"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    signal_id = Column(String, ForeignKey("alert_signals.id", ondelete="SET NULL"), nullable=True)
    channel = Column(String, nullable=False)
    recipient = Column(String, nullable=False)
    subject = Column(String, nullable=True)
    message = Column(String, nullable=False)
    status = Column(String, default="pending", nullable=False, index=True)
    priority = Column(Integer, default=5, nullable=False)  # 1 (low) .. 10 (urgent)
    max_retries = Column(Integer, default=3, nullable=False)
    current_attempts = Column(Integer, default=0, nullable=False)
    last_attempt_at = Column(DateTime(timezone=True), nullable=True)
    next_retry_at = Column(DateTime(timezone=True), nullable=True)
    scheduled_for = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    last_error = Column(String, nullable=True)
    provider_message_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)


class NotificationLog(Base):
    """One delivery attempt for a queued notification."""

    __tablename__ = "notification_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    queue_id = Column(String, ForeignKey("notification_queue.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False)
    channel = Column(String, nullable=False)
    recipient = Column(String, nullable=False)
    status = Column(String, nullable=False)  # sent, failed
    provider = Column(String, nullable=False)
    provider_message_id = Column(String, nullable=True)
    processing_time_ms = Column(Integer, nullable=True)
    error_message = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
