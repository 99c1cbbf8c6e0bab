"""Salary Data Access Layer -- MongoDB operations for the salaries collection."""

import logging
from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from coinbook.models.salary import SalaryRecord

logger = logging.getLogger("coinbook.dal.salaries")

COLLECTION = "salaries"


class SalaryDAL:
    """Data access layer for the salaries collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    @staticmethod
    def _to_model(doc: dict) -> SalaryRecord:
        doc["_id"] = str(doc["_id"])
        return SalaryRecord(**doc)

    async def upsert(
        self,
        username: str,
        month: str,
        fields: dict[str, Any],
        now: datetime,
    ) -> SalaryRecord:
        """Create or overwrite the row for ``(username, month)``.

        Raises:
            pymongo.errors.DuplicateKeyError: Two upserts for a brand-new
                period raced and the unique index rejected the loser.
        """
        doc = await self._collection.find_one_and_update(
            {"username": username, "month": month},
            {
                "$set": {**fields, "updated_at": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        logger.info("Upserted salary for %s in %s", username, month)
        return self._to_model(doc)

    async def get_by_id(self, salary_id: str) -> Optional[SalaryRecord]:
        if not ObjectId.is_valid(salary_id):
            return None
        doc = await self._collection.find_one({"_id": ObjectId(salary_id)})
        if doc is None:
            return None
        return self._to_model(doc)

    async def list_salaries(
        self,
        username: Optional[str] = None,
        month: Optional[str] = None,
    ) -> list[SalaryRecord]:
        """Rows sorted by month (latest first), then newest insert."""
        query: dict[str, Any] = {}
        if username:
            query["username"] = username
        if month:
            query["month"] = month
        cursor = self._collection.find(query).sort([("month", -1), ("created_at", -1)])
        rows: list[SalaryRecord] = []
        async for doc in cursor:
            rows.append(self._to_model(doc))
        return rows

    async def update_fields(
        self, salary_id: str, fields: dict[str, Any]
    ) -> Optional[SalaryRecord]:
        if not ObjectId.is_valid(salary_id):
            return None
        doc = await self._collection.find_one_and_update(
            {"_id": ObjectId(salary_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return self._to_model(doc)

    async def delete(self, salary_id: str) -> Optional[SalaryRecord]:
        if not ObjectId.is_valid(salary_id):
            return None
        doc = await self._collection.find_one_and_delete({"_id": ObjectId(salary_id)})
        if doc is None:
            return None
        logger.info("Deleted salary row %s", salary_id)
        return self._to_model(doc)
