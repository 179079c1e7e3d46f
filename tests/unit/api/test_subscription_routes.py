"""Unit tests for subscription routes."""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from fastapi import HTTPException, status

from cryptosignals.api.routes.subscriptions import SubscribeRequest, get_subscriptions, subscribe, unsubscribe
from cryptosignals.models import Subscription, User
from cryptosignals.services.subscription_service import SubscriptionLimitError
from tests.conftest import create_ticker


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def mock_db():
    """Create a mock database session."""
    return AsyncMock()


@pytest.fixture
def mock_user():
    user = MagicMock(spec=User)
    user.id = "user-123"
    user.subscription_tier = "free"
    return user


@pytest.fixture
def mock_subscription_service():
    with patch("cryptosignals.api.routes.subscriptions.SubscriptionService") as mock:
        yield mock


@pytest.fixture
def mock_ticker_service():
    with patch("cryptosignals.api.routes.subscriptions.TickerService") as mock:
        yield mock


@pytest.fixture
def subscription():
    return Subscription(
        user_id="user-123",
        ticker_symbol="BTCUSDT",
        active=True,
        subscribed_at=datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)
    )


# ============================================================================
# Tests
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestGetSubscriptions:
    """Test listing subscriptions."""

    async def test_list(self, mock_db, mock_user, mock_subscription_service, subscription):
        """✅ Subscriptions and tier limit returned."""
        mock_subscription_service.get_user_subscriptions = AsyncMock(return_value=[subscription])

        body = await get_subscriptions(current_user=mock_user, db=mock_db)

        assert body["tier"] == "free"
        assert body["limit"] == 3
        assert body["subscriptions"][0]["symbol"] == "BTCUSDT"


@pytest.mark.unit
@pytest.mark.asyncio
class TestSubscribe:
    """Test subscribing."""

    async def test_subscribe(self, mock_db, mock_user, mock_subscription_service, mock_ticker_service, subscription):
        """✅ Enabled ticker → subscribed."""
        mock_ticker_service.get_ticker_by_symbol = AsyncMock(return_value=create_ticker("1", "BTCUSDT", "Bitcoin"))
        mock_subscription_service.add_subscription = AsyncMock(return_value=subscription)

        body = await subscribe(request=SubscribeRequest(symbol="btcusdt"), current_user=mock_user, db=mock_db)

        assert body["symbol"] == "BTCUSDT"
        assert body["message"] == "Subscribed to BTCUSDT"
        mock_subscription_service.add_subscription.assert_called_once_with(mock_db, mock_user, "BTCUSDT")

    async def test_invalid_symbol(self, mock_db, mock_user, mock_subscription_service, mock_ticker_service):
        """❌ Malformed symbol → 400."""
        with pytest.raises(HTTPException) as exc_info:
            await subscribe(request=SubscribeRequest(symbol="BTC/USDT"), current_user=mock_user, db=mock_db)

        assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST

    async def test_disabled_ticker(self, mock_db, mock_user, mock_subscription_service, mock_ticker_service):
        """❌ Disabled ticker → 404."""
        mock_ticker_service.get_ticker_by_symbol = AsyncMock(
            return_value=create_ticker("3", "ADAUSDT", "Cardano", is_enabled=False)
        )

        with pytest.raises(HTTPException) as exc_info:
            await subscribe(request=SubscribeRequest(symbol="ADAUSDT"), current_user=mock_user, db=mock_db)

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND

    async def test_tier_limit(self, mock_db, mock_user, mock_subscription_service, mock_ticker_service):
        """❌ Tier limit reached → 403."""
        mock_ticker_service.get_ticker_by_symbol = AsyncMock(return_value=create_ticker("1", "BTCUSDT", "Bitcoin"))
        mock_subscription_service.add_subscription = AsyncMock(
            side_effect=SubscriptionLimitError("The free plan allows at most 3 tickers")
        )

        with pytest.raises(HTTPException) as exc_info:
            await subscribe(request=SubscribeRequest(symbol="BTCUSDT"), current_user=mock_user, db=mock_db)

        assert exc_info.value.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.unit
@pytest.mark.asyncio
class TestUnsubscribe:
    """Test unsubscribing."""

    async def test_unsubscribe(self, mock_db, mock_user, mock_subscription_service):
        """✅ Removed → message."""
        mock_subscription_service.remove_subscription = AsyncMock(return_value=True)

        body = await unsubscribe(symbol="btcusdt", current_user=mock_user, db=mock_db)

        assert body == {"message": "Unsubscribed from BTCUSDT"}

    async def test_not_subscribed(self, mock_db, mock_user, mock_subscription_service):
        """❌ Not subscribed → 404."""
        mock_subscription_service.remove_subscription = AsyncMock(return_value=False)

        with pytest.raises(HTTPException) as exc_info:
            await unsubscribe(symbol="BTCUSDT", current_user=mock_user, db=mock_db)

        assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND
