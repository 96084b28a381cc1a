"""
Health check endpoint.

Reports database reachability plus the payment settings an operator needs
to see at a glance: whether the gateway simulator is on and whether webhook
signatures can be verified.
"""
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


def _payment_status() -> dict:
    return {
        "simulationMode": settings.simulation_mode,
        "webhookVerification": bool(settings.midtrans_server_key),
    }


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Database round trip plus payment configuration flags."""
    checked_at = datetime.now(timezone.utc).isoformat()
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": False, "timestamp": checked_at},
        )
    return {
        "status": "healthy",
        "environment": settings.environment,
        "database": True,
        "payments": _payment_status(),
        "timestamp": checked_at,
    }
