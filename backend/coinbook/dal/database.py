"""MongoDB database connection management using Motor async driver.

Includes connection lifecycle and index management for every ledger
collection.
"""

import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from coinbook.config import settings

logger = logging.getLogger("coinbook.dal.database")

# Global database client and database instances
_client: AsyncIOMotorClient | None = None
_database: AsyncIOMotorDatabase | None = None


async def connect_to_mongo() -> None:
    """Establish connection to MongoDB.

    Called during FastAPI application startup.
    """
    global _client, _database

    _client = AsyncIOMotorClient(
        settings.MONGO_URL,
        serverSelectionTimeoutMS=5000  # 5 second timeout
    )
    _database = _client[settings.DATABASE_NAME]

    # Verify connection by pinging the database
    await _client.admin.command("ping")
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)


async def close_mongo_connection() -> None:
    """Close MongoDB connection.

    Called during FastAPI application shutdown.
    """
    global _client

    if _client:
        _client.close()
        logger.info("Closed MongoDB connection")


def get_database() -> AsyncIOMotorDatabase:
    """Get the MongoDB database instance.

    Returns:
        AsyncIOMotorDatabase: The database instance.

    Raises:
        RuntimeError: If database is not initialized.
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() first."
        )
    return _database


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create all ledger indexes.

    This is idempotent -- MongoDB silently ignores indexes that already exist.
    Should be called on application startup after the connection is established.

    Args:
        db: The Motor database instance to create indexes on.
    """
    logger.info("Ensuring indexes for all collections...")

    # --- game_counters ---
    await db.game_counters.create_index(
        [("game_id", ASCENDING)], unique=True, name="uq_game_id",
    )
    await db.game_counters.create_index(
        [("name", ASCENDING)], unique=True, name="uq_game_name",
    )

    # --- game_entries ---
    # Dashboard queries: one operator's entries by day and type.
    await db.game_entries.create_index(
        [("username", ASCENDING), ("date", ASCENDING), ("type", ASCENDING)],
        name="idx_username_date_type",
    )
    # Pending lookups by player tag.
    await db.game_entries.create_index(
        [("player_tag", ASCENDING), ("date", ASCENDING)],
        name="idx_player_tag_date",
    )
    await db.game_entries.create_index(
        [("created_at", DESCENDING)], name="idx_created_desc",
    )

    # --- payments ---
    await db.payments.create_index(
        [("payment_id", ASCENDING)], unique=True, name="uq_payment_id",
    )
    await db.payments.create_index(
        [("date_string", DESCENDING), ("created_at", DESCENDING)],
        name="idx_date_created",
    )

    # --- salaries: one row per staff member per month ---
    await db.salaries.create_index(
        [("username", ASCENDING), ("month", ASCENDING)],
        unique=True,
        name="uq_username_month",
    )

    # --- activities ---
    await db.activities.create_index(
        [("date", ASCENDING), ("game_id", ASCENDING)],
        name="idx_date_game",
    )

    # --- users / sessions / leads ---
    await db.users.create_index(
        [("email", ASCENDING)], unique=True, name="uq_email",
    )
    await db.login_sessions.create_index(
        [("username", ASCENDING), ("created_at", DESCENDING)],
        name="idx_username_created",
    )
    await db.facebook_leads.create_index(
        [("created_at", DESCENDING)], name="idx_created_desc",
    )

    logger.info("All indexes ensured successfully.")
