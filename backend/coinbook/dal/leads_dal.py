"""Facebook lead Data Access Layer."""

import logging
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from coinbook.models.lead import FacebookLead

logger = logging.getLogger("coinbook.dal.leads")

COLLECTION = "facebook_leads"


class LeadDAL:
    """Data access layer for the facebook_leads collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    @staticmethod
    def _to_model(doc: dict) -> FacebookLead:
        doc["_id"] = str(doc["_id"])
        return FacebookLead(**doc)

    async def create(self, lead: FacebookLead) -> FacebookLead:
        doc = lead.to_mongo_dict()
        result = await self._collection.insert_one(doc)
        lead.id = str(result.inserted_id)
        logger.info("Captured lead %s", lead.id)
        return lead

    async def list_all(self) -> list[FacebookLead]:
        cursor = self._collection.find().sort([("created_at", -1), ("_id", -1)])
        leads: list[FacebookLead] = []
        async for doc in cursor:
            leads.append(self._to_model(doc))
        return leads

    async def update_fields(
        self, lead_id: str, fields: dict[str, Any]
    ) -> Optional[FacebookLead]:
        if not ObjectId.is_valid(lead_id):
            return None
        doc = await self._collection.find_one_and_update(
            {"_id": ObjectId(lead_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return self._to_model(doc)
