"""Request-scoped access to the services owned by the running application."""
from fastapi import HTTPException, Request, status

from cryptosignals.scheduler.processor import ScheduledNotificationProcessor
from cryptosignals.services.notification_queue import NotificationQueueService


def get_notification_queue(request: Request) -> NotificationQueueService:
    """FastAPI dependency returning the application's notification queue service."""
    return request.app.state.notification_queue


def get_notification_processor(request: Request) -> ScheduledNotificationProcessor:
    """FastAPI dependency returning the application's scheduled processor."""
    processor = getattr(request.app.state, "notification_processor", None)
    if processor is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification processor is not configured"
        )
    return processor
