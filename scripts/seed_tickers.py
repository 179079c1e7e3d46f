#!/usr/bin/env python3
"""
Ticker Seeding Script

Inserts the default popular USDT pairs that are missing from the ticker
registry. Existing tickers are left untouched, so the script is safe to rerun.

Usage:
    python scripts/seed_tickers.py
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import cryptosignals modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from cryptosignals.core.database import AsyncSessionLocal, init_db
from cryptosignals.services.ticker_service import DEFAULT_TICKERS, TickerService


async def seed() -> int:
    await init_db()
    async with AsyncSessionLocal() as db:
        return await TickerService.seed_default_tickers(db)


def main():
    """Main entry point."""
    added = asyncio.run(seed())

    print("=" * 60)
    print("Ticker seeding complete:")
    print(f"  ✅ Added: {added}")
    print(f"  ⚠️  Skipped: {len(DEFAULT_TICKERS) - added}")
    print("=" * 60)


if __name__ == "__main__":
    main()
