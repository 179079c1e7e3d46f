"""TradingView alert webhook."""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
import hmac
import logging

from cryptosignals.api.dependencies import get_notification_queue
from cryptosignals.core.config import settings
from cryptosignals.core.database import get_db
from cryptosignals.services.notification_queue import NotificationQueueService
from cryptosignals.services.signal_service import SignalService

router = APIRouter(prefix="/api/webhook", tags=["webhook"])
logger = logging.getLogger(__name__)

WEBHOOK_SECRET_HEADER = "x-webhook-secret"


class TradingViewAlert(BaseModel):
    """Alert payload sent by a TradingView alert."""
    ticker: str
    action: str
    price: float
    timeframe: str
    time: Optional[datetime] = None
    strategy: Optional[str] = None
    alert_id: Optional[str] = None
    secret: Optional[str] = None


def _provided_secret(request: Request, alert: TradingViewAlert) -> Optional[str]:
    """Secret from the header, then the payload, then the query string."""
    return (
        request.headers.get(WEBHOOK_SECRET_HEADER)
        or alert.secret
        or request.query_params.get("secret")
    )


@router.post("/tradingview")
async def tradingview_webhook(
    request: Request,
    alert: TradingViewAlert,
    db: AsyncSession = Depends(get_db),
    queue: NotificationQueueService = Depends(get_notification_queue)
):
    """
    Turn a TradingView alert into a signal and queue subscriber notifications.

    The shared secret may be sent in the ``X-Webhook-Secret`` header, the
    ``secret`` payload field or the ``secret`` query parameter.
    """
    provided = _provided_secret(request, alert)
    if not provided or not hmac.compare_digest(
        provided.encode("utf-8"), settings.webhook_secret.encode("utf-8")
    ):
        logger.warning(f"Rejected TradingView webhook for {alert.ticker}: invalid secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook secret")

    ticker = alert.ticker.upper().strip()
    if ticker not in settings.webhook_tickers_list:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported ticker: {alert.ticker}. Supported: {', '.join(settings.webhook_tickers_list)}"
        )

    if alert.timeframe not in settings.webhook_timeframes_list:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported timeframe: {alert.timeframe}. Supported: {', '.join(settings.webhook_timeframes_list)}"
        )

    note = f"Strategy: {alert.strategy}" if alert.strategy else "TradingView Alert"

    try:
        signal = await SignalService.create_signal(
            db,
            ticker=ticker,
            signal_type=alert.action.lower(),
            price=alert.price,
            timeframe=alert.timeframe,
            source="tradingview_webhook",
            note=note,
            timestamp=alert.time
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    # Signal is already committed at this point
    try:
        queued = await queue.queue_signal_notifications(db, signal)
    except Exception as e:
        logger.error(f"Failed to queue notifications for signal {signal.id}: {e}", exc_info=True)
        await db.rollback()
        queued = []

    logger.info(
        f"TradingView {signal.signal_type.upper()} {ticker} {alert.timeframe} -> signal {signal.id} "
        f"(alert {alert.alert_id or 'n/a'})"
    )

    return {
        "success": True,
        "signal_id": signal.id,
        "message": f"{signal.signal_type.upper()} signal processed for {ticker} at {alert.price}",
        "timeframe": alert.timeframe,
        "notifications_queued": len(queued)
    }


@router.get("/config")
async def webhook_config(request: Request):
    """Describe how to configure a TradingView alert for this deployment."""
    webhook_url = str(request.base_url).rstrip("/") + "/api/webhook/tradingview"

    return {
        "webhook_url": webhook_url,
        "supported_tickers": settings.webhook_tickers_list,
        "supported_timeframes": settings.webhook_timeframes_list,
        "supported_actions": ["buy", "sell"],
        "secret_header": WEBHOOK_SECRET_HEADER,
        "example_payload": {
            "ticker": settings.webhook_tickers_list[0] if settings.webhook_tickers_list else "BTCUSDT",
            "action": "buy",
            "price": "{{close}}",
            "timeframe": "4h",
            "time": "{{timenow}}",
            "strategy": "My Strategy",
            "secret": "<your webhook secret>"
        }
    }
