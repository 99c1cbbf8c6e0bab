"""Health check endpoint."""

import logging

from fastapi import APIRouter

from coinbook.config import settings
from coinbook.dal.database import get_database

logger = logging.getLogger("coinbook.routes.health")
router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Service health with a MongoDB ping.

    Always 200 so the process can take traffic while the database is
    still coming up; the database state is reported in the body.
    """
    health_response = {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "checks": {
            "database": "unknown"
        }
    }

    try:
        db = get_database()
        await db.command("ping")
        health_response["checks"]["database"] = "ok"
    except Exception as e:
        logger.warning("Database health check failed: %s", str(e))
        health_response["checks"]["database"] = "down"
        health_response["status"] = "degraded"

    return health_response
