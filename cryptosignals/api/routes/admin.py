"""Admin routes: ticker registry management, manual signals and the activity log."""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from cryptosignals.api.dependencies import get_notification_queue
from cryptosignals.core.auth import require_admin
from cryptosignals.core.config import settings
from cryptosignals.core.database import get_db
from cryptosignals.models.user import User
from cryptosignals.services.admin_log_service import AdminLogService
from cryptosignals.services.notification_queue import NotificationQueueService
from cryptosignals.services.signal_service import SignalService, serialize_signal
from cryptosignals.services.ticker_query import serialize_ticker
from cryptosignals.services.ticker_service import DuplicateTickerError, TickerService

router = APIRouter(prefix="/api/admin", tags=["admin"])
logger = logging.getLogger(__name__)


class TickerCreateRequest(BaseModel):
    """Request to register a new ticker."""
    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    description: str = Field(min_length=1)
    category: str = "other"
    is_enabled: bool = Field(True, alias="isEnabled")


class TickerUpdateRequest(BaseModel):
    """Partial ticker update; omitted fields are left unchanged."""
    model_config = ConfigDict(populate_by_name=True)

    symbol: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    is_enabled: Optional[bool] = Field(None, alias="isEnabled")


class ManualSignalRequest(BaseModel):
    """Signal entered by an admin."""
    ticker: str
    action: str
    price: float
    timeframe: Optional[str] = None
    note: Optional[str] = None


@router.get("/tickers")
async def admin_list_tickers(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Every ticker, enabled or not, ordered by symbol."""
    tickers = await TickerService.get_all_tickers(db)
    return [serialize_ticker(t) for t in sorted(tickers, key=lambda t: t.symbol)]


@router.post("/tickers", status_code=status.HTTP_201_CREATED)
async def admin_create_ticker(
    request: TickerCreateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Register a ticker. 409 if the symbol already exists."""
    try:
        ticker = await TickerService.create_ticker(
            db,
            request.symbol,
            request.description,
            category=request.category,
            is_enabled=request.is_enabled
        )
    except DuplicateTickerError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await AdminLogService.log_action(
        db, admin.id, "CREATE_TICKER",
        target_table="available_tickers",
        target_id=ticker.id,
        notes=f"Created ticker {ticker.symbol}"
    )
    logger.info(f"Admin {admin.email} created ticker {ticker.symbol}")

    return serialize_ticker(ticker)


@router.put("/tickers/{ticker_id}")
async def admin_update_ticker(
    ticker_id: str,
    request: TickerUpdateRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Apply a partial update to a ticker."""
    updates = request.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    try:
        ticker = await TickerService.update_ticker(db, ticker_id, updates)
    except DuplicateTickerError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if ticker is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticker not found")

    await AdminLogService.log_action(
        db, admin.id, "UPDATE_TICKER",
        target_table="available_tickers",
        target_id=ticker.id,
        notes=f"Updated fields: {', '.join(sorted(updates))}"
    )

    return serialize_ticker(ticker)


@router.delete("/tickers/{ticker_id}")
async def admin_disable_ticker(
    ticker_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Disable a ticker. The row itself is kept."""
    ticker = await TickerService.disable_ticker(db, ticker_id)
    if ticker is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ticker not found")

    await AdminLogService.log_action(
        db, admin.id, "DISABLE_TICKER",
        target_table="available_tickers",
        target_id=ticker.id,
        notes=f"Disabled ticker {ticker.symbol}"
    )

    return {
        "success": True,
        "message": f"Ticker {ticker.symbol} disabled",
        "ticker": serialize_ticker(ticker)
    }


@router.post("/signals", status_code=status.HTTP_201_CREATED)
async def admin_create_signal(
    request: ManualSignalRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    queue: NotificationQueueService = Depends(get_notification_queue)
):
    """Create a signal by hand and queue notifications for the ticker's subscribers."""
    ticker = await TickerService.get_ticker_by_symbol(db, request.ticker)
    if ticker is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown ticker: {request.ticker}")

    if request.timeframe and request.timeframe not in settings.webhook_timeframes_list:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported timeframe: {request.timeframe}"
        )

    try:
        signal = await SignalService.create_signal(
            db,
            ticker=ticker.symbol,
            signal_type=request.action.lower(),
            price=request.price,
            timeframe=request.timeframe,
            source="admin_manual",
            note=request.note,
            user_id=admin.id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    await AdminLogService.log_action(
        db, admin.id, "CREATE_SIGNAL",
        target_table="alert_signals",
        target_id=signal.id,
        notes=f"{signal.signal_type.upper()} {signal.ticker} at {signal.price}"
    )

    # Signal and log entry are already committed at this point
    try:
        queued = await queue.queue_signal_notifications(db, signal)
    except Exception as e:
        logger.error(f"Failed to queue notifications for signal {signal.id}: {e}", exc_info=True)
        await db.rollback()
        queued = []

    return {
        "signal": serialize_signal(signal),
        "notifications_queued": len(queued)
    }


@router.get("/logs")
async def admin_activity_log(
    limit: int = 100,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Most recent admin actions, newest first."""
    entries = await AdminLogService.get_recent(db, min(max(limit, 1), 500))
    return [
        {
            "id": entry.id,
            "adminId": entry.admin_id,
            "action": entry.action,
            "targetTable": entry.target_table,
            "targetId": entry.target_id,
            "notes": entry.notes,
            "timestamp": entry.timestamp.isoformat()
        }
        for entry in entries
    ]
