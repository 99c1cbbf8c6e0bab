"""Payment Data Access Layer -- MongoDB operations for the payments collection.

Payments are addressed by their external ``payment_id``; the MongoDB
``_id`` is never exposed to callers.
"""

import logging
from typing import Any, AsyncIterator, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from coinbook.models.payment import Payment

logger = logging.getLogger("coinbook.dal.payments")

COLLECTION = "payments"


class PaymentDAL:
    """Data access layer for the payments collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    @staticmethod
    def _to_model(doc: dict) -> Payment:
        doc["_id"] = str(doc["_id"])
        return Payment(**doc)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, payment: Payment) -> Payment:
        doc = payment.to_mongo_dict()
        result = await self._collection.insert_one(doc)
        payment.id = str(result.inserted_id)
        logger.info(
            "Created %s payment %s via %s (amount=%.2f)",
            payment.tx_type,
            payment.payment_id,
            payment.method,
            payment.amount,
        )
        return payment

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_payment_id(self, payment_id: str) -> Optional[Payment]:
        doc = await self._collection.find_one({"payment_id": payment_id})
        if doc is None:
            return None
        return self._to_model(doc)

    async def list_payments(
        self,
        limit: int,
        method: Optional[str] = None,
        tx_type: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> list[Payment]:
        """Filtered listing, newest day first, then newest insert."""
        query: dict[str, Any] = {}
        if method:
            query["method"] = method
        if tx_type:
            query["tx_type"] = tx_type
        if date_from or date_to:
            date_query: dict[str, str] = {}
            if date_from:
                date_query["$gte"] = date_from
            if date_to:
                date_query["$lte"] = date_to
            query["date_string"] = date_query

        cursor = (
            self._collection.find(query)
            .sort([("date_string", -1), ("created_at", -1), ("_id", -1)])
            .limit(limit)
        )
        payments: list[Payment] = []
        async for doc in cursor:
            payments.append(self._to_model(doc))
        return payments

    async def iter_movements(self) -> AsyncIterator[dict[str, Any]]:
        """Yield ``{method, tx_type, amount}`` for every payment.

        Only the three folded fields are projected; each yielded document
        is a complete stored record, never a partial write.
        """
        cursor = self._collection.find(
            {}, {"_id": 0, "method": 1, "tx_type": 1, "amount": 1}
        )
        async for doc in cursor:
            yield doc

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_fields(
        self, payment_id: str, fields: dict[str, Any]
    ) -> Optional[Payment]:
        doc = await self._collection.find_one_and_update(
            {"payment_id": payment_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        logger.info("Updated payment %s (%s)", payment_id, ", ".join(sorted(fields)))
        return self._to_model(doc)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete(self, payment_id: str) -> Optional[Payment]:
        doc = await self._collection.find_one_and_delete({"payment_id": payment_id})
        if doc is None:
            return None
        logger.info("Deleted payment %s", payment_id)
        return self._to_model(doc)
