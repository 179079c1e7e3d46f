"""Signal history routes."""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cryptosignals.core.auth import get_current_user
from cryptosignals.core.database import get_db
from cryptosignals.models.user import User
from cryptosignals.services.signal_service import SignalService, serialize_signal

router = APIRouter(prefix="/api/signals", tags=["signals"])


@router.get("")
async def get_signals(
    ticker: Optional[str] = None,
    timeframe: Optional[str] = None,
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get recent signals, newest first.

    Requires authentication.
    """
    signals = await SignalService.get_signals(db, ticker=ticker, timeframe=timeframe, limit=limit)

    return {
        "count": len(signals),
        "signals": [serialize_signal(signal) for signal in signals]
    }
