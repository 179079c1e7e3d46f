"""User model."""
from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.orm import relationship, validates
from datetime import datetime, timezone
import uuid
from cryptosignals.core.database import Base


VALID_ROLES = {"admin", "user"}

# Maximum active ticker subscriptions per tier; None means unlimited
SUBSCRIPTION_TIER_LIMITS = {
    "free": 3,
    "basic": 10,
    "premium": 25,
    "pro": None,
}


class User(Base):
    """Platform user, either a subscriber or an admin."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, nullable=False, index=True)
    role = Column(String, default="user", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    subscription_tier = Column(String, default="free", nullable=False)
    telegram_chat_id = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    subscriptions = relationship("Subscription", back_populates="user", cascade="all, delete-orphan")

    @validates('role')
    def validate_role(self, key, value):
        if value not in VALID_ROLES:
            raise ValueError(f"role must be one of {VALID_ROLES}, got {value}")
        return value

    @validates('subscription_tier')
    def validate_subscription_tier(self, key, value):
        if value not in SUBSCRIPTION_TIER_LIMITS:
            raise ValueError(
                f"subscription_tier must be one of {set(SUBSCRIPTION_TIER_LIMITS)}, got {value}"
            )
        return value
