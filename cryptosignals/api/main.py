"""CryptoStrategy Pro API.

Run with ``uvicorn cryptosignals.api.main:app`` or ``python -m cryptosignals.api.main``.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging
import sys
import time

from cryptosignals.core.config import settings
from cryptosignals.core.database import AsyncSessionLocal, get_async_session, init_db
from cryptosignals.scheduler.processor import ScheduledNotificationProcessor
from cryptosignals.services.notification_queue import NotificationQueueService
from cryptosignals.services.ticker_service import TickerService
from cryptosignals.api.routes import (
    admin,
    health,
    notifications,
    signals,
    subscriptions,
    tickers,
    webhook,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout
)
logger = logging.getLogger(__name__)

# Headers the browser client reads from ticker listings
EXPOSED_HEADERS = ["X-Total-Count", "X-Filtered-Count", "X-API-Version"]

app = FastAPI(title="CryptoStrategy Pro API", version=settings.api_version)

app.state.limiter = tickers.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Built here, started by the startup hook
app.state.notification_queue = NotificationQueueService(max_retries=settings.notification_max_retries)
app.state.notification_processor = ScheduledNotificationProcessor(
    AsyncSessionLocal,
    app.state.notification_queue,
    interval_seconds=settings.notification_interval_seconds,
    batch_size=settings.notification_batch_size
)


async def seed_ticker_registry():
    """Insert the default tickers; a failure is logged and does not stop the API."""
    async with get_async_session() as db:
        try:
            added = await TickerService.seed_default_tickers(db)
        except Exception as e:
            logger.error(f"Ticker seeding failed: {e}", exc_info=True)
            return
    logger.info(f"Ticker registry seeded ({added} added)")


@app.on_event("startup")
async def on_startup():
    await init_db()

    if settings.seed_tickers_on_startup:
        await seed_ticker_registry()
    else:
        logger.info("Ticker seeding skipped (SEED_TICKERS_ON_STARTUP=false)")

    app.state.notification_processor.start()
    logger.info(f"API v{settings.api_version} ready on port {settings.backend_port}")


@app.on_event("shutdown")
async def on_shutdown():
    app.state.notification_processor.stop()
    logger.info("API stopped")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status and duration of every request."""
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.error(
            f"{request.method} {request.url.path} failed after "
            f"{(time.perf_counter() - started) * 1000:.0f}ms"
        )
        raise

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({(time.perf_counter() - started) * 1000:.0f}ms)"
    )
    return response


@app.exception_handler(Exception)
async def unhandled_exception(request: Request, exc: Exception):
    """Last-resort 500; CORS headers are added here because the middleware is bypassed."""
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        exc_info=exc
    )

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error": str(exc) if settings.log_level == "DEBUG" else "Internal server error"
        },
        headers={
            "Access-Control-Allow-Origin": request.headers.get("origin", "*"),
            "Access-Control-Allow-Credentials": "true",
        }
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=EXPOSED_HEADERS,
)

for module in (health, tickers, subscriptions, signals, webhook, admin, notifications):
    app.include_router(module.router)


@app.get("/")
async def root():
    return {"status": "ok", "service": "cryptosignals-api", "version": settings.api_version}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.backend_port)
