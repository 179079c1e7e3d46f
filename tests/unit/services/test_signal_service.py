"""Unit tests for SignalService."""
import pytest
from decimal import Decimal
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from cryptosignals.models.signal import Signal
from cryptosignals.services.signal_service import SignalService, serialize_signal


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.add = MagicMock()
    return db


# ============================================================================
# Tests for create_signal
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestCreateSignal:
    """Test signal creation and validation."""

    async def test_create(self, mock_db):
        """✅ Valid signal persisted."""
        signal = await SignalService.create_signal(
            mock_db, "btcusdt", "buy", 67500.5, "4h", "tradingview_webhook", note="RSI cross"
        )

        assert signal.ticker == "BTCUSDT"
        assert signal.signal_type == "buy"
        assert signal.price == Decimal("67500.5")
        assert signal.timeframe == "4h"
        assert signal.source == "tradingview_webhook"
        assert signal.timestamp is not None
        mock_db.add.assert_called_once_with(signal)
        mock_db.commit.assert_called_once()

    async def test_explicit_timestamp_kept(self, mock_db):
        """✅ Provided timestamp used as the event time."""
        when = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

        signal = await SignalService.create_signal(
            mock_db, "ETHUSDT", "sell", "3500", "1h", "admin_manual", timestamp=when
        )

        assert signal.timestamp == when

    async def test_invalid_type(self, mock_db):
        """❌ action=hold → ValueError."""
        with pytest.raises(ValueError, match="buy"):
            await SignalService.create_signal(mock_db, "BTCUSDT", "hold", 1, "4h", "admin_manual")

        mock_db.add.assert_not_called()

    @pytest.mark.parametrize("price", [0, -1, "abc", float("nan")])
    async def test_invalid_price(self, mock_db, price):
        """❌ Non-positive or non-numeric price → ValueError."""
        with pytest.raises(ValueError):
            await SignalService.create_signal(mock_db, "BTCUSDT", "buy", price, "4h", "admin_manual")


# ============================================================================
# Tests for get_signals / serialize_signal
# ============================================================================

@pytest.mark.unit
@pytest.mark.asyncio
class TestGetSignals:
    """Test signal retrieval."""

    async def test_get_signals(self, mock_db):
        """✅ Returns list from the query."""
        signal = MagicMock(spec=Signal)
        mock_result = MagicMock()
        mock_result.scalars.return_value.all.return_value = [signal]
        mock_db.execute.return_value = mock_result

        signals = await SignalService.get_signals(mock_db, ticker="btcusdt", timeframe="4h", limit=10)

        assert signals == [signal]
        mock_db.execute.assert_called_once()

    async def test_serialize_signal(self):
        """✅ Signal serialized with camelCase keys and float price."""
        signal = Signal(
            id="sig-1",
            ticker="BTCUSDT",
            signal_type="buy",
            price=Decimal("67500.12345678"),
            timestamp=datetime(2025, 6, 1, tzinfo=timezone.utc),
            timeframe="4h",
            source="tradingview_webhook",
            note=None,
            user_id=None
        )

        data = serialize_signal(signal)

        assert data["signalType"] == "buy"
        assert data["price"] == pytest.approx(67500.12345678)
        assert data["timestamp"] == "2025-06-01T00:00:00+00:00"
        assert data["userId"] is None
