"""Activity Data Access Layer -- MongoDB operations for the activities collection."""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

from coinbook.models.game import Activity

logger = logging.getLogger("coinbook.dal.activities")

COLLECTION = "activities"


class ActivityDAL:
    """Data access layer for the append-only activities collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    async def create(self, activity: Activity) -> Activity:
        doc = activity.to_mongo_dict()
        result = await self._collection.insert_one(doc)
        activity.id = str(result.inserted_id)
        logger.debug(
            "Recorded activity for game %d by %s", activity.game_id, activity.username
        )
        return activity

    async def list_since(self, start_date: str) -> list[Activity]:
        """Activities on or after the UTC day ``start_date`` (``YYYY-MM-DD``)."""
        cursor = self._collection.find({"date": {"$gte": start_date}}).sort(
            [("date", 1), ("created_at", 1)]
        )
        activities: list[Activity] = []
        async for doc in cursor:
            doc["_id"] = str(doc["_id"])
            activities.append(Activity(**doc))
        return activities
