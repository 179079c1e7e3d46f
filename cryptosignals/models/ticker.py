"""Available ticker model."""
from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime, timezone
import uuid
from cryptosignals.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Ticker(Base):
    """Tradable symbol shown to end users.

    Tickers are never physically deleted; disabling sets ``is_enabled`` to False.
    """

    __tablename__ = "available_tickers"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    symbol = Column(String, unique=True, nullable=False, index=True)
    description = Column(String, nullable=False)
    category = Column(String, default="other", nullable=False)
    is_enabled = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
