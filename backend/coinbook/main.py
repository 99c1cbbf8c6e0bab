"""
Coinbook FastAPI application entry point.

Configures FastAPI, CORS, the storage error handler, route registration
and the MongoDB connection lifecycle. The admin bootstrap runs once per
process start inside the lifespan.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from coinbook.config import settings
from coinbook.dal.database import connect_to_mongo, close_mongo_connection, ensure_indexes, get_database
from coinbook.dal.users_dal import LoginSessionDAL, UserDAL
from coinbook.errors import StorageError
from coinbook.routes.admin import router as admin_router
from coinbook.routes.auth import router as auth_router
from coinbook.routes.facebook_leads import router as leads_router
from coinbook.routes.game_entries import router as game_entries_router
from coinbook.routes.games import router as games_router
from coinbook.routes.health import router as health_router
from coinbook.routes.logins import router as logins_router
from coinbook.routes.payments import router as payments_router
from coinbook.routes.salaries import router as salaries_router
from coinbook.routes.stats import router as stats_router
from coinbook.services.user_service import UserService

logger = logging.getLogger("coinbook.app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect MongoDB, ensure indexes and the admin account; close on shutdown."""
    try:
        await connect_to_mongo()
        db = get_database()
        await ensure_indexes(db)
        await UserService(UserDAL(db), LoginSessionDAL(db)).ensure_admin_user()
        logger.info("Coinbook v%s started with database connection", settings.APP_VERSION)
    except Exception as e:
        # The process still serves /health (as degraded) without a database.
        logger.warning(
            "Failed to initialise MongoDB during startup: %s. "
            "Application will start but database operations will fail until connection is established.",
            str(e)
        )
        logger.info("Coinbook v%s started WITHOUT database connection", settings.APP_VERSION)

    yield

    await close_mongo_connection()
    logger.info("Coinbook shutdown complete")


app = FastAPI(
    title="Coinbook API",
    description="Back-office ledger for game coins, player entries, payments and salaries",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
    max_age=600,
)


@app.exception_handler(PyMongoError)
async def storage_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    """Report storage failures generically; full detail goes to the log."""
    logger.exception("Storage failure on %s %s", request.method, request.url.path)
    error = StorageError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


app.include_router(health_router)  # Health endpoint at root level
app.include_router(health_router, prefix="/api")
app.include_router(auth_router, prefix="/api")
app.include_router(games_router, prefix="/api")
app.include_router(game_entries_router, prefix="/api")
app.include_router(payments_router, prefix="/api")
app.include_router(salaries_router, prefix="/api")
app.include_router(stats_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(logins_router, prefix="/api")
app.include_router(leads_router, prefix="/api")


@app.get("/")
async def root():
    """API information."""
    return {
        "name": "Coinbook API",
        "version": settings.APP_VERSION,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "coinbook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
