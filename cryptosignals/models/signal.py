"""Signal model for buy/sell alerts."""
from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey
from datetime import datetime, timezone
import uuid
from cryptosignals.core.database import Base


SIGNAL_TYPES = ("buy", "sell")


class Signal(Base):
    """Buy/sell event created by a TradingView webhook or an admin."""

    __tablename__ = "alert_signals"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)  # null for system signals
    ticker = Column(String, nullable=False, index=True)
    signal_type = Column(String, nullable=False)  # buy, sell
    price = Column(Numeric(20, 8), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    timeframe = Column(String, nullable=True)
    source = Column(String, default="webhook", nullable=False)  # tradingview_webhook, admin_manual
    note = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
