"""Admin routes for the notification queue and its processor."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from cryptosignals.api.dependencies import get_notification_processor, get_notification_queue
from cryptosignals.core.auth import require_admin
from cryptosignals.core.database import get_db
from cryptosignals.models.user import User
from cryptosignals.scheduler.processor import ScheduledNotificationProcessor
from cryptosignals.services.admin_log_service import AdminLogService
from cryptosignals.services.notification_queue import NotificationQueueService, serialize_queue_item

router = APIRouter(prefix="/api/admin/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


class IntervalRequest(BaseModel):
    """New processing interval."""
    interval_seconds: int


@router.get("/queue")
async def get_queue(
    limit: int = Query(100, ge=1, le=1000),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    queue: NotificationQueueService = Depends(get_notification_queue)
):
    """Most recent queue rows, newest first."""
    items = await queue.get_queue_for_admin(db, limit)
    return [serialize_queue_item(item) for item in items]


@router.get("/stats")
async def get_stats(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    queue: NotificationQueueService = Depends(get_notification_queue)
):
    """Queue counts per status and channel."""
    return await queue.get_queue_stats(db)


@router.get("/health")
async def get_processor_health(
    admin: User = Depends(require_admin),
    processor: ScheduledNotificationProcessor = Depends(get_notification_processor)
):
    """Processor status plus queue statistics."""
    return await processor.health_check()


@router.post("/{notification_id}/retry")
async def retry_notification(
    notification_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    queue: NotificationQueueService = Depends(get_notification_queue)
):
    """Put a notification back into the pending state."""
    if not await queue.retry_notification(db, notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")

    await AdminLogService.log_action(
        db, admin.id, "RETRY_NOTIFICATION",
        target_table="notification_queue",
        target_id=notification_id
    )

    return {"success": True, "message": "Notification queued for retry"}


@router.post("/process")
async def force_process(
    admin: User = Depends(require_admin),
    processor: ScheduledNotificationProcessor = Depends(get_notification_processor)
):
    """Drain one batch now instead of waiting for the next scheduled run."""
    processed = await processor.force_process()
    return {"success": True, "processed": processed}


@router.put("/interval")
async def update_interval(
    request: IntervalRequest,
    admin: User = Depends(require_admin),
    processor: ScheduledNotificationProcessor = Depends(get_notification_processor)
):
    """Change how often the processor drains the queue."""
    try:
        processor.update_interval(request.interval_seconds)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(f"Admin {admin.email} set notification interval to {request.interval_seconds}s")
    return processor.status()
