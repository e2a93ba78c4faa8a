"""
Health check endpoints
"""

import logging

from fastapi import APIRouter, Depends
from pymongo.database import Database
from pymongo.errors import PyMongoError

from legate.config import settings
from legate.database.mongo import get_db
from legate.utils.datetime import utc_now

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Simple API health check."""
    return {
        "ok": True,
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
    }


@router.get("/health/db")
def database_health(db: Database = Depends(get_db)):
    """MongoDB health check."""
    try:
        db.command("ping")
    except PyMongoError as exc:
        logger.warning("Database ping failed: %s", exc)
        return {
            "ok": False,
            "status": "unhealthy",
            "database": "disconnected",
            "timestamp": utc_now().isoformat(),
        }

    return {
        "ok": True,
        "status": "healthy",
        "database": "connected",
        "timestamp": utc_now().isoformat(),
    }
