"""API routes package initialization."""
from cryptosignals.api.routes import (
    tickers,
    admin,
    notifications,
    signals,
    subscriptions,
    webhook,
    health,
)

__all__ = ["tickers", "admin", "notifications", "signals", "subscriptions", "webhook", "health"]
