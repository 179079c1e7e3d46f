"""Database-backed notification queue.

Signals fan out into one queue row per subscriber and channel. A scheduled
processor drains due rows in priority order and hands each to the sender
registered for its channel. Failed deliveries are retried with exponential
backoff (2**attempts minutes) until ``max_retries`` is reached.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta, timezone
from sqlalchemy import select, desc, asc, func, or_, and_, update
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import time

from cryptosignals.models import NotificationQueueItem, NotificationLog, Signal
from cryptosignals.models.notification import NOTIFICATION_CHANNELS
from cryptosignals.senders import NotificationSender
from cryptosignals.senders.demo import default_senders
from cryptosignals.senders.models import DeliveryResult
from cryptosignals.services.subscription_service import SubscriptionService
from cryptosignals.utils.formatting import format_signal_message, format_signal_subject

logger = logging.getLogger(__name__)


SIGNAL_NOTIFICATION_PRIORITY = 8

# Rows left in "processing" this long (crash or failed commit mid-delivery) are picked up again
STALE_PROCESSING_AFTER = timedelta(minutes=10)


def serialize_queue_item(item: NotificationQueueItem) -> Dict[str, Any]:
    """Serialize a queue row for the admin endpoints."""
    def iso(value: Optional[datetime]) -> Optional[str]:
        return value.isoformat() if value else None

    return {
        "id": item.id,
        "userId": item.user_id,
        "signalId": item.signal_id,
        "channel": item.channel,
        "recipient": item.recipient,
        "subject": item.subject,
        "status": item.status,
        "priority": item.priority,
        "currentAttempts": item.current_attempts,
        "maxRetries": item.max_retries,
        "scheduledFor": iso(item.scheduled_for),
        "nextRetryAt": iso(item.next_retry_at),
        "sentAt": iso(item.sent_at),
        "lastError": item.last_error,
        "providerMessageId": item.provider_message_id,
        "createdAt": iso(item.created_at),
    }


class NotificationQueueService:
    """Queue, drain and inspect notifications."""

    def __init__(
        self,
        senders: Optional[Dict[str, NotificationSender]] = None,
        max_retries: int = 3
    ):
        self.senders = senders if senders is not None else default_senders()
        self.max_retries = max_retries

    def _build_item(
        self,
        user_id: str,
        channel: str,
        recipient: str,
        message: str,
        subject: Optional[str] = None,
        signal_id: Optional[str] = None,
        priority: int = 5,
        scheduled_for: Optional[datetime] = None
    ) -> NotificationQueueItem:
        if channel not in NOTIFICATION_CHANNELS:
            raise ValueError(f"Unsupported channel: {channel}")
        if not 1 <= priority <= 10:
            raise ValueError(f"priority must be between 1 and 10, got {priority}")

        now = datetime.now(timezone.utc)
        return NotificationQueueItem(
            user_id=user_id,
            signal_id=signal_id,
            channel=channel,
            recipient=recipient,
            subject=subject,
            message=message,
            status="pending",
            priority=priority,
            max_retries=self.max_retries,
            current_attempts=0,
            scheduled_for=scheduled_for or now,
            created_at=now,
            updated_at=now
        )

    async def queue_notification(
        self,
        db: AsyncSession,
        user_id: str,
        channel: str,
        recipient: str,
        message: str,
        subject: Optional[str] = None,
        signal_id: Optional[str] = None,
        priority: int = 5,
        scheduled_for: Optional[datetime] = None
    ) -> str:
        """
        Add a notification to the queue.

        Returns:
            ID of the queued notification

        Raises:
            ValueError: If the channel or priority is invalid
        """
        item = self._build_item(
            user_id, channel, recipient, message,
            subject=subject, signal_id=signal_id,
            priority=priority, scheduled_for=scheduled_for
        )
        db.add(item)
        await db.commit()

        logger.info(f"Notification queued: {item.id} ({channel} to {recipient})")
        return item.id

    async def queue_signal_notifications(self, db: AsyncSession, signal: Signal) -> List[str]:
        """
        Queue a notification per channel for every subscriber of the signal's ticker.

        Subscribers get an email notification when they have an email address and a
        telegram notification when they have linked a chat.

        Returns:
            IDs of the queued notifications
        """
        subscribers = await SubscriptionService.get_ticker_subscribers(db, signal.ticker)

        if not subscribers:
            logger.info(f"No subscribers for {signal.ticker}, nothing to queue")
            return []

        subject = format_signal_subject(signal)
        message = format_signal_message(signal)

        items = []
        for user in subscribers:
            if user.email:
                items.append(self._build_item(
                    user.id, "email", user.email, message,
                    subject=subject, signal_id=signal.id,
                    priority=SIGNAL_NOTIFICATION_PRIORITY
                ))
            if user.telegram_chat_id:
                items.append(self._build_item(
                    user.id, "telegram", user.telegram_chat_id, message,
                    signal_id=signal.id,
                    priority=SIGNAL_NOTIFICATION_PRIORITY
                ))

        db.add_all(items)
        await db.commit()

        logger.info(f"Queued {len(items)} notifications for signal {signal.id}")
        return [item.id for item in items]

    async def process_queue(self, db: AsyncSession, batch_size: int = 50) -> int:
        """
        Process pending notifications that are due.

        Rows stuck in ``processing`` since before ``STALE_PROCESSING_AFTER`` are
        treated as pending again; their interrupted attempt still counts.

        Returns:
            Number of notifications processed
        """
        now = datetime.now(timezone.utc)

        result = await db.execute(
            select(NotificationQueueItem)
            .where(
                or_(
                    NotificationQueueItem.status == "pending",
                    and_(
                        NotificationQueueItem.status == "processing",
                        NotificationQueueItem.last_attempt_at <= now - STALE_PROCESSING_AFTER
                    )
                ),
                NotificationQueueItem.scheduled_for <= now,
                or_(
                    NotificationQueueItem.next_retry_at.is_(None),
                    NotificationQueueItem.next_retry_at <= now
                )
            )
            .order_by(desc(NotificationQueueItem.priority), asc(NotificationQueueItem.created_at))
            .limit(batch_size)
        )
        pending = list(result.scalars().all())

        logger.info(f"Processing {len(pending)} notifications")

        for item in pending:
            await self.process_notification(db, item)

        return len(pending)

    async def process_notification(self, db: AsyncSession, item: NotificationQueueItem) -> None:
        """Deliver one notification and record the outcome."""
        start_time = time.perf_counter()

        item.status = "processing"
        item.last_attempt_at = datetime.now(timezone.utc)
        item.current_attempts = (item.current_attempts or 0) + 1
        await db.commit()

        sender = self.senders.get(item.channel)

        try:
            if sender is None:
                raise ValueError(f"Unsupported channel: {item.channel}")
            result = await sender.send(item.channel, item.recipient, item.message, subject=item.subject)
        except Exception as e:
            logger.error(f"Error processing notification {item.id}: {e}", exc_info=True)
            result = DeliveryResult(success=False, error=str(e))

        processing_ms = int((time.perf_counter() - start_time) * 1000)
        provider = sender.provider if sender is not None else "unknown"

        if result.success:
            item.status = "sent"
            item.sent_at = datetime.now(timezone.utc)
            item.provider_message_id = result.message_id
            self._log_delivery(db, item, "sent", provider, processing_ms, result)
            await db.commit()
            logger.info(f"Notification {item.id} sent via {item.channel}")
        else:
            await self.handle_failure(db, item, result.error or "Unknown error", processing_ms, provider)

    async def handle_failure(
        self,
        db: AsyncSession,
        item: NotificationQueueItem,
        error: str,
        processing_ms: int = 0,
        provider: str = "unknown"
    ) -> None:
        """Schedule a retry with exponential backoff, or mark the notification failed."""
        should_retry = item.current_attempts < item.max_retries

        if should_retry:
            item.status = "pending"
            item.next_retry_at = datetime.now(timezone.utc) + timedelta(minutes=2 ** item.current_attempts)
            logger.warning(
                f"Notification {item.id} failed (attempt {item.current_attempts}/{item.max_retries}), "
                f"retrying at {item.next_retry_at.isoformat()}: {error}"
            )
        else:
            item.status = "failed"
            item.next_retry_at = None
            logger.error(f"Notification {item.id} failed permanently: {error}")

        item.last_error = error
        self._log_delivery(db, item, "failed", provider, processing_ms, DeliveryResult(success=False, error=error))
        await db.commit()

    def _log_delivery(
        self,
        db: AsyncSession,
        item: NotificationQueueItem,
        status: str,
        provider: str,
        processing_ms: int,
        result: DeliveryResult
    ) -> None:
        db.add(NotificationLog(
            queue_id=item.id,
            user_id=item.user_id,
            channel=item.channel,
            recipient=item.recipient,
            status=status,
            provider=provider,
            provider_message_id=result.message_id,
            processing_time_ms=processing_ms,
            error_message=result.error
        ))

    async def get_queue_stats(self, db: AsyncSession) -> Dict[str, Any]:
        """Counts per status and channel, total delivery attempts and recent failures."""
        result = await db.execute(
            select(
                NotificationQueueItem.status,
                NotificationQueueItem.channel,
                func.count().label("count")
            ).group_by(NotificationQueueItem.status, NotificationQueueItem.channel)
        )
        queue_stats = [
            {"status": row[0], "channel": row[1], "count": row[2]}
            for row in result.all()
        ]

        total_result = await db.execute(select(func.count()).select_from(NotificationLog))
        total_processed = total_result.scalar_one()

        failures_result = await db.execute(
            select(NotificationQueueItem)
            .where(NotificationQueueItem.status == "failed")
            .order_by(desc(NotificationQueueItem.updated_at))
            .limit(10)
        )
        recent_failures = [serialize_queue_item(item) for item in failures_result.scalars().all()]

        return {
            "queue_stats": queue_stats,
            "total_processed": total_processed,
            "recent_failures": recent_failures
        }

    async def retry_notification(self, db: AsyncSession, notification_id: str) -> bool:
        """
        Put a notification back into the pending state.

        Returns:
            True if the notification exists, False otherwise
        """
        result = await db.execute(
            update(NotificationQueueItem)
            .where(NotificationQueueItem.id == notification_id)
            .values(
                status="pending",
                next_retry_at=None,
                last_error=None,
                updated_at=datetime.now(timezone.utc)
            )
        )
        await db.commit()

        return result.rowcount > 0

    async def get_queue_for_admin(self, db: AsyncSession, limit: int = 100) -> List[NotificationQueueItem]:
        """Most recent queue rows, newest first."""
        result = await db.execute(
            select(NotificationQueueItem)
            .order_by(desc(NotificationQueueItem.created_at))
            .limit(limit)
        )
        return list(result.scalars().all())
