"""Unit tests for ScheduledNotificationProcessor.

The APScheduler instance is mocked so nothing is actually scheduled.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from cryptosignals.scheduler.processor import JOB_ID, ScheduledNotificationProcessor


# ============================================================================
# Fixtures
# ============================================================================

class FakeSessionFactory:
    """Async context manager factory yielding a single mock session."""

    def __init__(self):
        self.session = AsyncMock()

    def __call__(self):
        return self

    async def __aenter__(self):
        return self.session

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def scheduler():
    mock = MagicMock()
    mock.running = False
    return mock


@pytest.fixture
def queue_service():
    service = MagicMock()
    service.process_queue = AsyncMock(return_value=3)
    service.get_queue_stats = AsyncMock(return_value={"queue_stats": [], "total_processed": 0, "recent_failures": []})
    return service


@pytest.fixture
def processor(scheduler, queue_service):
    return ScheduledNotificationProcessor(
        FakeSessionFactory(),
        queue_service,
        interval_seconds=30,
        batch_size=25,
        scheduler=scheduler
    )


# ============================================================================
# Tests for lifecycle
# ============================================================================

@pytest.mark.unit
class TestLifecycle:
    """Test start/stop and interval validation."""

    def test_not_started_on_construction(self, processor, scheduler):
        """✅ Constructing schedules nothing."""
        assert processor.is_running is False
        scheduler.add_job.assert_not_called()
        scheduler.start.assert_not_called()

    def test_interval_below_minimum_rejected(self, queue_service, scheduler):
        """❌ interval < 10s → ValueError."""
        with pytest.raises(ValueError):
            ScheduledNotificationProcessor(FakeSessionFactory(), queue_service, interval_seconds=5, scheduler=scheduler)

    def test_start(self, processor, scheduler):
        """✅ start registers the job and starts the scheduler."""
        processor.start()

        assert processor.is_running is True
        scheduler.add_job.assert_called_once()
        assert scheduler.add_job.call_args.kwargs["id"] == JOB_ID
        assert scheduler.add_job.call_args.kwargs["next_run_time"] is not None
        scheduler.start.assert_called_once()

    def test_start_twice_is_noop(self, processor, scheduler):
        """✅ Second start does nothing."""
        processor.start()
        processor.start()

        scheduler.add_job.assert_called_once()

    def test_stop(self, processor, scheduler):
        """✅ stop removes the job and shuts the scheduler down."""
        processor.start()
        scheduler.running = True

        processor.stop()

        assert processor.is_running is False
        scheduler.remove_job.assert_called_once_with(JOB_ID)
        scheduler.shutdown.assert_called_once_with(wait=False)

    def test_stop_when_not_running(self, processor, scheduler):
        """✅ stop before start is harmless."""
        processor.stop()

        scheduler.shutdown.assert_not_called()

    def test_update_interval_reschedules(self, processor, scheduler):
        """✅ Running processor is rescheduled."""
        processor.start()

        processor.update_interval(60)

        assert processor.interval_seconds == 60
        scheduler.reschedule_job.assert_called_once()

    def test_update_interval_not_running(self, processor, scheduler):
        """✅ Stopped processor only records the interval."""
        processor.update_interval(45)

        assert processor.interval_seconds == 45
        scheduler.reschedule_job.assert_not_called()

    def test_update_interval_too_small(self, processor):
        """❌ interval < 10s → ValueError, interval unchanged."""
        with pytest.raises(ValueError):
            processor.update_interval(9)

        assert processor.interval_seconds == 30

    def test_status(self, processor):
        """✅ Status reports configuration and flags."""
        assert processor.status() == {
            "is_running": False,
            "is_processing": False,
            "interval_seconds": 30,
            "batch_size": 25
        }


# ============================================================================
# Tests for batch processing
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestProcessBatch:
    """Test batch processing."""

    async def test_process_batch(self, processor, queue_service):
        """✅ Delegates to the queue service with the batch size."""
        processed = await processor.process_batch()

        assert processed == 3
        assert queue_service.process_queue.call_args.args[1] == 25
        assert processor.is_processing is False

    async def test_skips_when_already_processing(self, processor, queue_service):
        """✅ Overlapping run skipped."""
        processor.is_processing = True

        assert await processor.process_batch() == 0
        queue_service.process_queue.assert_not_called()

    async def test_errors_logged_not_raised(self, processor, queue_service):
        """✅ Queue failure → 0 and the flag is cleared."""
        queue_service.process_queue.side_effect = RuntimeError("db down")

        assert await processor.process_batch() == 0
        assert processor.is_processing is False

    async def test_force_process(self, processor, queue_service):
        """✅ force_process runs a batch immediately."""
        assert await processor.force_process() == 3

    async def test_health_check(self, processor):
        """✅ Healthy report includes processor status and queue stats."""
        report = await processor.health_check()

        assert report["healthy"] is True
        assert report["processor"]["interval_seconds"] == 30
        assert report["queue"]["total_processed"] == 0

    async def test_health_check_failure(self, processor, queue_service):
        """✅ Stats failure → unhealthy report."""
        queue_service.get_queue_stats.side_effect = RuntimeError("db down")

        report = await processor.health_check()

        assert report["healthy"] is False
        assert report["error"] == "db down"
