"""Standalone notification queue processor.

Runs the same processor the API starts in-process, for deployments that keep
the API and the queue drainer in separate processes.
"""
import logging
import asyncio
from cryptosignals.core.config import settings
from cryptosignals.core.database import AsyncSessionLocal, init_db
from cryptosignals.scheduler.processor import ScheduledNotificationProcessor
from cryptosignals.services.notification_queue import NotificationQueueService

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Main entry point for the notification processor."""
    await init_db()

    processor = ScheduledNotificationProcessor(
        AsyncSessionLocal,
        NotificationQueueService(max_retries=settings.notification_max_retries),
        interval_seconds=settings.notification_interval_seconds,
        batch_size=settings.notification_batch_size
    )

    logger.info("=" * 60)
    logger.info("Starting notification processor...")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Interval: every {settings.notification_interval_seconds} seconds")
    logger.info(f"Batch size: {settings.notification_batch_size}")
    logger.info("=" * 60)

    processor.start()

    try:
        # Keep running
        while True:
            await asyncio.sleep(1)
    except (KeyboardInterrupt, SystemExit, asyncio.CancelledError):
        logger.info("Shutting down notification processor...")
    finally:
        processor.stop()


if __name__ == "__main__":
    asyncio.run(main())
