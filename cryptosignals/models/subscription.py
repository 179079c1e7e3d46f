"""Subscription model linking users to tickers."""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from cryptosignals.core.database import Base


class Subscription(Base):
    """Subscription model linking users to the tickers they receive signals for."""

    __tablename__ = "user_subscriptions"
    __table_args__ = (
        UniqueConstraint("user_id", "ticker_symbol", name="uq_user_ticker"),
    )

    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    ticker_symbol = Column(String, ForeignKey("available_tickers.symbol"), primary_key=True, index=True)
    active = Column(Boolean, default=True, nullable=False)
    subscribed_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    user = relationship("User", back_populates="subscriptions")
