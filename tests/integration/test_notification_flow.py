"""Integration tests for signal fan-out and queue processing against SQLite."""
import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy import select, func
from unittest.mock import MagicMock

from cryptosignals.models import NotificationLog, NotificationQueueItem, User
from cryptosignals.scheduler.processor import ScheduledNotificationProcessor
from cryptosignals.senders import NotificationSender
from cryptosignals.senders.models import DeliveryResult
from cryptosignals.services.notification_queue import NotificationQueueService
from cryptosignals.services.signal_service import SignalService
from cryptosignals.services.subscription_service import SubscriptionLimitError, SubscriptionService
from cryptosignals.services.ticker_service import TickerService


class FailingSender(NotificationSender):
    provider = "broken"

    async def send(self, channel, recipient, message, subject=None):
        return DeliveryResult(success=False, error="provider unavailable")


class RecordingSender(NotificationSender):
    provider = "recording"

    def __init__(self):
        self.recipients = []

    async def send(self, channel, recipient, message, subject=None):
        self.recipients.append(recipient)
        return DeliveryResult(success=True, message_id=f"msg-{len(self.recipients)}")


async def create_subscriber(db, email, telegram_chat_id=None, tier="free"):
    user = User(email=email, role="user", subscription_tier=tier, telegram_chat_id=telegram_chat_id)
    db.add(user)
    await db.commit()
    return user


async def count(db, model, *criteria):
    query = select(func.count()).select_from(model)
    if criteria:
        query = query.where(*criteria)
    result = await db.execute(query)
    return result.scalar_one()


@pytest.mark.integration
@pytest.mark.asyncio
class TestNotificationFlow:
    """Test signal → queue → delivery."""

    async def test_signal_delivered_to_subscribers(self, test_db):
        """✅ Subscribers get one notification per channel, all delivered."""
        await TickerService.seed_default_tickers(test_db)
        alice = await create_subscriber(test_db, "alice@example.com", telegram_chat_id="1001")
        bob = await create_subscriber(test_db, "bob@example.com")
        await create_subscriber(test_db, "carol@example.com")  # not subscribed

        await SubscriptionService.add_subscription(test_db, alice, "BTCUSDT")
        await SubscriptionService.add_subscription(test_db, bob, "btcusdt")

        signal = await SignalService.create_signal(test_db, "BTCUSDT", "buy", "67000", "4h", "tradingview_webhook")

        service = NotificationQueueService()
        queued = await service.queue_signal_notifications(test_db, signal)
        assert len(queued) == 3

        processed = await service.process_queue(test_db, batch_size=50)

        assert processed == 3
        assert await count(test_db, NotificationQueueItem, NotificationQueueItem.status == "sent") == 3
        assert await count(test_db, NotificationLog) == 3

        stats = await service.get_queue_stats(test_db)
        assert stats["total_processed"] == 3
        assert stats["recent_failures"] == []

    async def test_failed_delivery_waits_for_backoff(self, test_db):
        """✅ Failed item rescheduled and skipped until its retry time."""
        user = await create_subscriber(test_db, "dave@example.com")
        service = NotificationQueueService(senders={"email": FailingSender()}, max_retries=3)

        notification_id = await service.queue_notification(test_db, user.id, "email", user.email, "hello")

        assert await service.process_queue(test_db) == 1
        item = (await test_db.execute(
            select(NotificationQueueItem).where(NotificationQueueItem.id == notification_id)
        )).scalar_one()
        assert item.status == "pending"
        assert item.current_attempts == 1
        assert item.next_retry_at is not None

        # Backoff not elapsed yet
        assert await service.process_queue(test_db) == 0

        # Manual retry clears the backoff
        assert await service.retry_notification(test_db, notification_id) is True
        assert await service.process_queue(test_db) == 1

    async def test_tier_limit_enforced(self, test_db):
        """❌ Fourth subscription on the free tier rejected."""
        await TickerService.seed_default_tickers(test_db)
        user = await create_subscriber(test_db, "erin@example.com")

        for symbol in ("BTCUSDT", "ETHUSDT", "SOLUSDT"):
            await SubscriptionService.add_subscription(test_db, user, symbol)

        with pytest.raises(SubscriptionLimitError):
            await SubscriptionService.add_subscription(test_db, user, "UNIUSDT")

        # Resubscribing to an existing ticker is not a new slot
        await SubscriptionService.add_subscription(test_db, user, "BTCUSDT")
        assert await SubscriptionService.count_active_subscriptions(test_db, user.id) == 3

    async def test_processor_drains_queue(self, session_factory, test_db):
        """✅ Processor batch uses its own session and drains due items."""
        user = await create_subscriber(test_db, "frank@example.com")
        service = NotificationQueueService()
        await service.queue_notification(test_db, user.id, "email", user.email, "hello")

        scheduler = MagicMock()
        scheduler.running = False
        processor = ScheduledNotificationProcessor(session_factory, service, scheduler=scheduler)

        assert await processor.process_batch() == 1

        report = await processor.health_check()
        assert report["healthy"] is True
        assert report["queue"]["total_processed"] == 1


def queue_row(user, recipient, priority=5, created_ago=0, **fields):
    """Queue row with controlled priority and age, bypassing queue_notification."""
    now = datetime.now(timezone.utc)
    return NotificationQueueItem(
        user_id=user.id,
        channel="email",
        recipient=recipient,
        message="hello",
        status=fields.pop("status", "pending"),
        priority=priority,
        max_retries=3,
        current_attempts=fields.pop("current_attempts", 0),
        scheduled_for=fields.pop("scheduled_for", now - timedelta(minutes=30)),
        created_at=now - timedelta(minutes=created_ago),
        updated_at=now,
        **fields
    )


@pytest.mark.integration
@pytest.mark.asyncio
class TestQueuePickup:
    """Test which rows a drain selects and in what order."""

    async def test_priority_then_age_order(self, test_db):
        """✅ Highest priority first, oldest first within a priority; batch size respected."""
        user = await create_subscriber(test_db, "gina@example.com")
        now = datetime.now(timezone.utc)
        test_db.add_all([
            queue_row(user, "low-old", priority=5, created_ago=3),
            queue_row(user, "high-new", priority=9, created_ago=1),
            queue_row(user, "high-old", priority=9, created_ago=2),
            queue_row(user, "low-new", priority=5, created_ago=1),
            queue_row(user, "future", priority=10, scheduled_for=now + timedelta(hours=1)),
            queue_row(user, "backing-off", priority=10, current_attempts=1, next_retry_at=now + timedelta(minutes=5)),
        ])
        await test_db.commit()

        sender = RecordingSender()
        service = NotificationQueueService(senders={"email": sender})

        assert await service.process_queue(test_db, batch_size=3) == 3
        assert sender.recipients == ["high-old", "high-new", "low-old"]

        assert await service.process_queue(test_db, batch_size=3) == 1
        assert sender.recipients[-1] == "low-new"

        # Not yet due: still pending, never handed to the sender
        assert await service.process_queue(test_db, batch_size=3) == 0
        assert await count(test_db, NotificationQueueItem, NotificationQueueItem.status == "pending") == 2
        assert "future" not in sender.recipients
        assert "backing-off" not in sender.recipients

    async def test_stale_processing_rows_recovered(self, test_db):
        """✅ Row stuck in processing past the timeout is delivered; a recent one is left alone."""
        user = await create_subscriber(test_db, "hank@example.com")
        now = datetime.now(timezone.utc)
        test_db.add_all([
            queue_row(user, "stuck", status="processing", current_attempts=1, last_attempt_at=now - timedelta(minutes=30)),
            queue_row(user, "in-flight", status="processing", current_attempts=1, last_attempt_at=now - timedelta(seconds=5)),
        ])
        await test_db.commit()

        sender = RecordingSender()
        service = NotificationQueueService(senders={"email": sender})

        assert await service.process_queue(test_db) == 1
        assert sender.recipients == ["stuck"]

        stuck = (await test_db.execute(
            select(NotificationQueueItem).where(NotificationQueueItem.recipient == "stuck")
        )).scalar_one()
        assert stuck.status == "sent"
        assert stuck.current_attempts == 2
        assert await count(test_db, NotificationQueueItem, NotificationQueueItem.status == "processing") == 1
