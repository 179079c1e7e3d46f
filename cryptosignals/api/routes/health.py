"""Liveness and database health endpoints."""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import time

from cryptosignals.core.config import settings
from cryptosignals.core.database import engine, get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "service": "cryptosignals-api",
        "version": settings.api_version,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/health/db")
async def check_database_health(db: AsyncSession = Depends(get_db)):
    """Database connectivity and pool usage. Responds 503 when the database cannot be reached."""
    started = time.perf_counter()
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "error": str(e),
                "error_type": type(e).__name__
            }
        )

    return {
        "status": "healthy",
        "database": "reachable",
        "backend": engine.url.get_backend_name(),
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "pool": engine.pool.status()
    }
