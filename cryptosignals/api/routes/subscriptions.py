"""Subscription management API routes."""
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from cryptosignals.core.auth import get_current_user
from cryptosignals.core.database import get_db
from cryptosignals.models.user import User, SUBSCRIPTION_TIER_LIMITS
from cryptosignals.services.subscription_service import SubscriptionLimitError, SubscriptionService
from cryptosignals.services.ticker_service import TickerService, validate_symbol

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])


class SubscribeRequest(BaseModel):
    """Request to subscribe to a ticker."""
    symbol: str


def _serialize(subscription) -> dict:
    return {
        "symbol": subscription.ticker_symbol,
        "subscribedAt": subscription.subscribed_at.isoformat(),
        "active": subscription.active
    }


@router.get("")
async def get_subscriptions(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the current user's active subscriptions and tier limit.

    Requires authentication.
    """
    subscriptions = await SubscriptionService.get_user_subscriptions(db, current_user.id)

    return {
        "tier": current_user.subscription_tier,
        "limit": SUBSCRIPTION_TIER_LIMITS.get(current_user.subscription_tier),
        "subscriptions": [_serialize(sub) for sub in subscriptions]
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def subscribe(
    request: SubscribeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Subscribe the current user to an enabled ticker.

    Requires authentication.
    """
    try:
        symbol = validate_symbol(request.symbol)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    ticker = await TickerService.get_ticker_by_symbol(db, symbol)
    if ticker is None or not ticker.is_enabled:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Ticker {symbol} is not available"
        )

    try:
        subscription = await SubscriptionService.add_subscription(db, current_user, symbol)
    except SubscriptionLimitError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    return {
        **_serialize(subscription),
        "message": f"Subscribed to {symbol}"
    }


@router.delete("/{symbol}")
async def unsubscribe(
    symbol: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Remove a ticker from the current user's subscriptions.

    Requires authentication.
    """
    symbol = symbol.upper().strip()

    removed = await SubscriptionService.remove_subscription(db, current_user.id, symbol)
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Not subscribed to {symbol}"
        )

    return {"message": f"Unsubscribed from {symbol}"}
