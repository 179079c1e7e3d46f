"""Models package initialization."""
from cryptosignals.models.user import User
from cryptosignals.models.ticker import Ticker
from cryptosignals.models.subscription import Subscription
from cryptosignals.models.signal import Signal
from cryptosignals.models.notification import NotificationQueueItem, NotificationLog
from cryptosignals.models.admin_log import AdminLog

__all__ = [
    "User",
    "Ticker",
    "Subscription",
    "Signal",
    "NotificationQueueItem",
    "NotificationLog",
    "AdminLog"
]
