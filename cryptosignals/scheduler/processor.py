"""Scheduled notification queue processor."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from cryptosignals.services.notification_queue import NotificationQueueService

logger = logging.getLogger(__name__)


JOB_ID = "process_notification_queue"
MIN_INTERVAL_SECONDS = 10
INITIAL_DELAY_SECONDS = 3


class ScheduledNotificationProcessor:
    """Drains the notification queue on a fixed interval.

    Nothing runs until :meth:`start` is called; the owner (API startup hook or the
    standalone scheduler) is responsible for calling :meth:`stop`.
    """

    def __init__(
        self,
        session_factory: Callable[[], Any],
        queue_service: NotificationQueueService,
        interval_seconds: int = 30,
        batch_size: int = 50,
        scheduler: Optional[AsyncIOScheduler] = None
    ):
        if interval_seconds < MIN_INTERVAL_SECONDS:
            raise ValueError(f"Processing interval cannot be less than {MIN_INTERVAL_SECONDS} seconds")

        self.session_factory = session_factory
        self.queue_service = queue_service
        self.interval_seconds = interval_seconds
        self.batch_size = batch_size
        self.scheduler = scheduler or AsyncIOScheduler()
        self.is_running = False
        self.is_processing = False

    def start(self):
        """Register the processing job and start the scheduler."""
        if self.is_running:
            logger.debug("Notification processor already running")
            return

        self.scheduler.add_job(
            self.process_batch,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc) + timedelta(seconds=INITIAL_DELAY_SECONDS)
        )

        if not self.scheduler.running:
            self.scheduler.start()

        self.is_running = True
        logger.info(f"Notification processor scheduled every {self.interval_seconds} seconds")

    def stop(self):
        """Remove the processing job and shut the scheduler down."""
        if not self.is_running:
            return

        if self.scheduler.get_job(JOB_ID) is not None:
            self.scheduler.remove_job(JOB_ID)

        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

        self.is_running = False
        logger.info("Notification processor stopped")

    async def process_batch(self) -> int:
        """
        Process one batch of due notifications.

        Returns:
            Number of notifications processed (0 when a batch is already in flight)
        """
        if self.is_processing:
            logger.info("Notification processing already in progress, skipping batch")
            return 0

        self.is_processing = True
        started = datetime.now(timezone.utc)

        try:
            async with self.session_factory() as db:
                processed = await self.queue_service.process_queue(db, self.batch_size)

            elapsed_ms = (datetime.now(timezone.utc) - started).total_seconds() * 1000
            if processed:
                logger.info(f"Processed {processed} notifications in {elapsed_ms:.0f}ms")
            return processed
        except Exception as e:
            logger.error(f"Error in scheduled notification processing: {e}", exc_info=True)
            return 0
        finally:
            self.is_processing = False

    async def force_process(self) -> int:
        """Process a batch immediately, outside the schedule."""
        logger.info("Force processing notifications")
        return await self.process_batch()

    def update_interval(self, interval_seconds: int):
        """
        Change the processing interval.

        Raises:
            ValueError: If the interval is below the minimum
        """
        if interval_seconds < MIN_INTERVAL_SECONDS:
            raise ValueError(f"Processing interval cannot be less than {MIN_INTERVAL_SECONDS} seconds")

        self.interval_seconds = interval_seconds

        if self.is_running:
            self.scheduler.reschedule_job(JOB_ID, trigger=IntervalTrigger(seconds=interval_seconds))

        logger.info(f"Notification processing interval updated to {interval_seconds} seconds")

    def status(self) -> Dict[str, Any]:
        return {
            "is_running": self.is_running,
            "is_processing": self.is_processing,
            "interval_seconds": self.interval_seconds,
            "batch_size": self.batch_size
        }

    async def health_check(self) -> Dict[str, Any]:
        """Processor status plus queue statistics."""
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            async with self.session_factory() as db:
                stats = await self.queue_service.get_queue_stats(db)
            return {
                "healthy": True,
                "processor": self.status(),
                "queue": stats,
                "timestamp": timestamp
            }
        except Exception as e:
            logger.error(f"Notification processor health check failed: {e}", exc_info=True)
            return {
                "healthy": False,
                "error": str(e),
                "timestamp": timestamp
            }
