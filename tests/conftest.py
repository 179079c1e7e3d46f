"""Shared pytest fixtures for the crypto signals backend tests."""
import os

# Settings are read at import time; provide test values before anything imports cryptosignals
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SEED_TICKERS_ON_STARTUP", "false")
os.environ.setdefault("WEBHOOK_SECRET", "test-webhook-secret")
os.environ.setdefault("WEBHOOK_TICKERS", "BTCUSDT,ETHUSDT")

import pytest
from datetime import datetime, timezone
from typing import List

from cryptosignals.models import Ticker


def create_ticker(
    ticker_id: str,
    symbol: str,
    description: str,
    category: str = "Major",
    is_enabled: bool = True,
    created_at: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)
) -> Ticker:
    """Factory function to create Ticker instances for testing."""
    return Ticker(
        id=ticker_id,
        symbol=symbol,
        description=description,
        category=category,
        is_enabled=is_enabled,
        created_at=created_at,
        updated_at=created_at
    )


@pytest.fixture
def sample_tickers() -> List[Ticker]:
    """Five tickers across three categories, one of them disabled."""
    return [
        create_ticker("1", "BTCUSDT", "Bitcoin / USD Tether", "Major"),
        create_ticker("2", "ETHUSDT", "Ethereum / USD Tether", "Major"),
        create_ticker("3", "ADAUSDT", "Cardano / USD Tether", "Layer 1", is_enabled=False),
        create_ticker("4", "SOLUSDT", "Solana / USD Tether", "Layer 1"),
        create_ticker("5", "UNIUSDT", "Uniswap / USD Tether", "DeFi"),
    ]


@pytest.fixture
def many_tickers() -> List[Ticker]:
    """Twenty enabled tickers sharing a common search term."""
    return [
        create_ticker(str(i), f"TICKER{i}USDT", f"Test Token {i} / USD Tether", "Test")
        for i in range(1, 21)
    ]
