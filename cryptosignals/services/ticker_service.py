"""Ticker registry service."""
from typing import List, Optional, Dict, Any
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from cryptosignals.models import Ticker
import logging
import re

logger = logging.getLogger(__name__)


class DuplicateTickerError(ValueError):
    """Raised when a symbol is already registered."""


# Symbol validation pattern: 2-20 uppercase letters or digits (BTCUSDT, 1INCHUSDT)
SYMBOL_PATTERN = re.compile(r'^[A-Z0-9]{2,20}$')

# Popular USDT pairs seeded into an empty registry
DEFAULT_TICKERS = [
    ("BTCUSDT", "Bitcoin / Tether USD", "major"),
    ("ETHUSDT", "Ethereum / Tether USD", "major"),
    ("BNBUSDT", "Binance Coin / Tether USD", "major"),
    ("ADAUSDT", "Cardano / Tether USD", "layer1"),
    ("SOLUSDT", "Solana / Tether USD", "layer1"),
    ("XRPUSDT", "Ripple / Tether USD", "major"),
    ("DOTUSDT", "Polkadot / Tether USD", "layer1"),
    ("MATICUSDT", "Polygon / Tether USD", "layer1"),
    ("LINKUSDT", "Chainlink / Tether USD", "utility"),
    ("AVAXUSDT", "Avalanche / Tether USD", "layer1"),
    ("LTCUSDT", "Litecoin / Tether USD", "legacy"),
    ("UNIUSDT", "Uniswap / Tether USD", "defi"),
    ("ATOMUSDT", "Cosmos / Tether USD", "layer1"),
    ("VETUSDT", "VeChain / Tether USD", "utility"),
    ("FILUSDT", "Filecoin / Tether USD", "utility"),
    ("TRXUSDT", "TRON / Tether USD", "layer1"),
    ("ETCUSDT", "Ethereum Classic / Tether USD", "legacy"),
    ("XLMUSDT", "Stellar / Tether USD", "legacy"),
    ("AAVEUSDT", "Aave / Tether USD", "defi"),
    ("EOSUSDT", "EOS / Tether USD", "legacy"),
]


def validate_symbol(symbol: str) -> str:
    """
    Validate and normalize a ticker symbol.

    Args:
        symbol: Ticker symbol to validate

    Returns:
        Normalized (uppercase) ticker symbol

    Raises:
        ValueError: If symbol format is invalid
    """
    if not symbol:
        raise ValueError("Ticker symbol cannot be empty")

    normalized = symbol.upper().strip()

    if not SYMBOL_PATTERN.match(normalized):
        raise ValueError(
            f"Invalid ticker format: '{symbol}'. "
            "Ticker must be 2-20 uppercase letters or digits."
        )

    return normalized


class TickerService:
    """Service for ticker registry management."""

    @staticmethod
    async def get_all_tickers(db: AsyncSession) -> List[Ticker]:
        """Get every ticker, enabled or not."""
        result = await db.execute(select(Ticker))
        return list(result.scalars().all())

    @staticmethod
    async def get_enabled_tickers(db: AsyncSession) -> List[Ticker]:
        """Get enabled tickers ordered by symbol."""
        result = await db.execute(
            select(Ticker).where(Ticker.is_enabled == True).order_by(Ticker.symbol)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_ticker(db: AsyncSession, ticker_id: str) -> Optional[Ticker]:
        result = await db.execute(select(Ticker).where(Ticker.id == ticker_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_ticker_by_symbol(db: AsyncSession, symbol: str) -> Optional[Ticker]:
        result = await db.execute(select(Ticker).where(Ticker.symbol == symbol.upper()))
        return result.scalar_one_or_none()

    @staticmethod
    async def create_ticker(
        db: AsyncSession,
        symbol: str,
        description: str,
        category: str = "other",
        is_enabled: bool = True
    ) -> Ticker:
        """
        Create a new ticker.

        Raises:
            ValueError: If the symbol is malformed
            DuplicateTickerError: If the symbol is already registered
        """
        symbol = validate_symbol(symbol)

        if await TickerService.get_ticker_by_symbol(db, symbol):
            raise DuplicateTickerError(f"Ticker {symbol} already exists")

        ticker = Ticker(
            symbol=symbol,
            description=description,
            category=category or "other",
            is_enabled=is_enabled
        )
        db.add(ticker)
        await db.commit()
        await db.refresh(ticker)

        logger.info(f"Created ticker {ticker.symbol} ({ticker.id})")
        return ticker

    @staticmethod
    async def update_ticker(
        db: AsyncSession,
        ticker_id: str,
        updates: Dict[str, Any]
    ) -> Optional[Ticker]:
        """
        Apply partial updates to a ticker.

        Args:
            db: Database session
            ticker_id: Ticker ID
            updates: Any of symbol, description, category, is_enabled

        Returns:
            Updated Ticker, or None if not found

        Raises:
            ValueError: If a new symbol is malformed
            DuplicateTickerError: If the new symbol belongs to another ticker
        """
        ticker = await TickerService.get_ticker(db, ticker_id)
        if ticker is None:
            return None

        if updates.get("symbol") is not None:
            symbol = validate_symbol(updates["symbol"])
            if symbol != ticker.symbol:
                existing = await TickerService.get_ticker_by_symbol(db, symbol)
                if existing is not None:
                    raise DuplicateTickerError(f"Ticker {symbol} already exists")
                ticker.symbol = symbol

        for field_name in ("description", "category", "is_enabled"):
            if updates.get(field_name) is not None:
                setattr(ticker, field_name, updates[field_name])

        await db.commit()
        await db.refresh(ticker)

        logger.info(f"Updated ticker {ticker.symbol} ({ticker.id})")
        return ticker

    @staticmethod
    async def disable_ticker(db: AsyncSession, ticker_id: str) -> Optional[Ticker]:
        """Soft-delete a ticker by disabling it. Returns None if not found."""
        ticker = await TickerService.get_ticker(db, ticker_id)
        if ticker is None:
            return None

        ticker.is_enabled = False
        await db.commit()
        await db.refresh(ticker)

        logger.info(f"Disabled ticker {ticker.symbol} ({ticker.id})")
        return ticker

    @staticmethod
    async def seed_default_tickers(db: AsyncSession) -> int:
        """
        Insert the default popular tickers that are not registered yet.

        Returns:
            Number of tickers added
        """
        result = await db.execute(select(Ticker.symbol))
        existing_symbols = {row[0] for row in result.all()}

        added = 0
        for symbol, description, category in DEFAULT_TICKERS:
            if symbol in existing_symbols:
                logger.debug(f"Skipped: {symbol} (already exists)")
                continue
            db.add(Ticker(symbol=symbol, description=description, category=category, is_enabled=True))
            added += 1

        if added:
            await db.commit()

        logger.info(f"Ticker seeding complete: {added} added, {len(existing_symbols) + added} total")
        return added
