"""Admin activity log model."""
from sqlalchemy import Column, String, DateTime, ForeignKey
from datetime import datetime, timezone
import uuid
from cryptosignals.core.database import Base


class AdminLog(Base):
    """Audit record of a mutation performed by an admin."""

    __tablename__ = "admin_activity_log"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    admin_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    action = Column(String, nullable=False)  # CREATE_TICKER, UPDATE_TICKER, DISABLE_TICKER, ...
    target_table = Column(String, nullable=True)
    target_id = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True)
