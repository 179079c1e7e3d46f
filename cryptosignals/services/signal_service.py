"""Signal service for persistence and retrieval."""
from typing import List, Optional, Dict, Any
from decimal import Decimal, InvalidOperation
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession
from cryptosignals.models import Signal
from cryptosignals.models.signal import SIGNAL_TYPES
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def serialize_signal(signal: Signal) -> Dict[str, Any]:
    """Serialize a signal into its public JSON shape."""
    return {
        "id": str(signal.id),
        "ticker": signal.ticker,
        "signalType": signal.signal_type,
        "price": float(signal.price),
        "timestamp": signal.timestamp.isoformat(),
        "timeframe": signal.timeframe,
        "source": signal.source,
        "note": signal.note,
        "userId": signal.user_id,
    }


class SignalService:
    """Service for signal management."""

    @staticmethod
    async def create_signal(
        db: AsyncSession,
        ticker: str,
        signal_type: str,
        price: Any,
        timeframe: Optional[str],
        source: str,
        note: Optional[str] = None,
        timestamp: Optional[datetime] = None,
        user_id: Optional[str] = None
    ) -> Signal:
        """
        Create a new signal record.

        Args:
            db: Database session
            ticker: Ticker symbol
            signal_type: "buy" or "sell"
            price: Signal price (anything Decimal accepts as a string)
            timeframe: Chart timeframe the alert fired on
            source: Where the signal came from (tradingview_webhook, admin_manual)
            note: Optional free-text note
            timestamp: Event time (defaults to now)
            user_id: Creating admin, None for system signals

        Returns:
            Signal object

        Raises:
            ValueError: If the signal type or price is invalid
        """
        if signal_type not in SIGNAL_TYPES:
            raise ValueError('Action must be either "buy" or "sell"')

        try:
            price_value = Decimal(str(price))
        except InvalidOperation:
            raise ValueError(f"Invalid price: {price}")

        if not price_value.is_finite() or price_value <= 0:
            raise ValueError(f"Invalid price: {price}")

        signal = Signal(
            ticker=ticker.upper(),
            signal_type=signal_type,
            price=price_value,
            timestamp=timestamp or datetime.now(timezone.utc),
            timeframe=timeframe,
            source=source,
            note=note,
            user_id=user_id
        )
        db.add(signal)
        await db.commit()
        await db.refresh(signal)

        logger.info(f"Signal created: {signal_type.upper()} {signal.ticker} at {price_value} ({timeframe}, {source})")
        return signal

    @staticmethod
    async def get_signals(
        db: AsyncSession,
        ticker: Optional[str] = None,
        timeframe: Optional[str] = None,
        limit: int = 50
    ) -> List[Signal]:
        """Get recent signals, newest first, optionally filtered by ticker and timeframe."""
        query = select(Signal).order_by(desc(Signal.timestamp)).limit(limit)

        if ticker:
            query = query.where(Signal.ticker == ticker.upper())

        if timeframe:
            query = query.where(Signal.timeframe == timeframe)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_signal(db: AsyncSession, signal_id: str) -> Optional[Signal]:
        result = await db.execute(select(Signal).where(Signal.id == signal_id))
        return result.scalar_one_or_none()
