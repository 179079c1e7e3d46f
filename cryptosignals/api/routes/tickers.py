"""Public ticker listing routes."""
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi import Limiter
from slowapi.util import get_remote_address
import logging

from cryptosignals.core.config import settings
from cryptosignals.core.database import get_db
from cryptosignals.services.ticker_service import TickerService
from cryptosignals.services.ticker_query import TickerQuery, query_tickers, serialize_ticker

router = APIRouter(prefix="/api/tickers", tags=["tickers"])
logger = logging.getLogger(__name__)

# Rate limiter shared by the public API routes
limiter = Limiter(key_func=get_remote_address)

CACHE_CONTROL = "public, max-age=300"


def storage_error_response(message: str) -> JSONResponse:
    """Fixed 500 body returned when the ticker store cannot be read."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


@router.get("")
@limiter.limit(settings.rate_limit_api)
async def list_tickers(
    request: Request,
    response: Response,
    search: Optional[str] = None,
    enabled: Optional[str] = None,
    category: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """
    Search, filter, sort and paginate the ticker registry.

    All query parameters are optional and accepted as raw strings; values that
    cannot be interpreted fall back to their defaults rather than failing.
    Only ``enabled=false`` includes disabled tickers.
    """
    query = TickerQuery.from_params(
        search=search,
        enabled=enabled,
        category=category,
        sort=sort,
        order=order,
        limit=limit,
        offset=offset
    )

    try:
        tickers = await TickerService.get_all_tickers(db)
    except Exception as e:
        logger.error(f"Failed to fetch tickers: {e}", exc_info=True)
        return storage_error_response("Failed to fetch tickers")

    result = query_tickers(tickers, query)

    response.headers["Cache-Control"] = CACHE_CONTROL
    response.headers["X-API-Version"] = settings.api_version
    response.headers["X-Total-Count"] = str(result.count)
    response.headers["X-Filtered-Count"] = str(result.filtered_count)

    logger.debug(
        f"Ticker query search={query.search!r} category={query.category!r} "
        f"returned {len(result.data)}/{result.filtered_count} in {result.processing_time_ms}ms"
    )

    return result.to_dict()


@router.get("/enabled")
async def list_enabled_tickers(db: AsyncSession = Depends(get_db)):
    """Legacy listing: every enabled ticker ordered by symbol, without an envelope."""
    try:
        tickers = await TickerService.get_enabled_tickers(db)
    except Exception as e:
        logger.error(f"Failed to get enabled tickers: {e}", exc_info=True)
        return storage_error_response("Failed to get enabled tickers")

    return [serialize_ticker(ticker) for ticker in tickers]
