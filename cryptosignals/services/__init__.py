"""Services package initialization."""
from cryptosignals.services.ticker_service import TickerService
from cryptosignals.services.subscription_service import SubscriptionService
from cryptosignals.services.signal_service import SignalService
from cryptosignals.services.admin_log_service import AdminLogService
from cryptosignals.services.notification_queue import NotificationQueueService

__all__ = [
    "TickerService",
    "SubscriptionService",
    "SignalService",
    "AdminLogService",
    "NotificationQueueService"
]
