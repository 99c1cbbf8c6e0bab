"""Game Entry Data Access Layer -- MongoDB operations for game_entries.

Provides async create/query methods for GameEntry documents plus the
single targeted update used to clear pending balances.
"""

import logging
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from coinbook.models.common import EntryType
from coinbook.models.game_entry import GameEntry

logger = logging.getLogger("coinbook.dal.game_entries")

COLLECTION = "game_entries"

# Newest first; _id breaks ties between entries created in the same instant.
_NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


class GameEntryDAL:
    """Data access layer for the game_entries collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]

    @staticmethod
    def _to_model(doc: dict) -> GameEntry:
        doc["_id"] = str(doc["_id"])
        return GameEntry(**doc)

    async def _find(self, query: dict, limit: int = 0) -> list[GameEntry]:
        cursor = self._collection.find(query).sort(_NEWEST_FIRST)
        if limit:
            cursor = cursor.limit(limit)
        entries: list[GameEntry] = []
        async for doc in cursor:
            entries.append(self._to_model(doc))
        return entries

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(self, entry: GameEntry) -> GameEntry:
        """Insert a new entry and return it with its generated id."""
        doc = entry.to_mongo_dict()
        result = await self._collection.insert_one(doc)
        entry.id = str(result.inserted_id)
        logger.info(
            "Created %s entry %s on %s for %s (final=%.2f)",
            entry.type,
            entry.id,
            entry.game_name,
            entry.player_name or entry.player_tag,
            entry.amount_final,
        )
        return entry

    async def create_many(self, entries: list[GameEntry]) -> list[GameEntry]:
        """Insert a batch of entries in one round trip, preserving order."""
        if not entries:
            return []
        docs = [entry.to_mongo_dict() for entry in entries]
        result = await self._collection.insert_many(docs, ordered=True)
        for entry, inserted_id in zip(entries, result.inserted_ids):
            entry.id = str(inserted_id)
        logger.info("Created %d entries in batch", len(entries))
        return entries

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, entry_id: str) -> Optional[GameEntry]:
        if not ObjectId.is_valid(entry_id):
            return None
        doc = await self._collection.find_one({"_id": ObjectId(entry_id)})
        if doc is None:
            return None
        return self._to_model(doc)

    async def list_entries(
        self,
        limit: int,
        username: Optional[str] = None,
        player_name: Optional[str] = None,
        player_tag: Optional[str] = None,
        entry_type: Optional[str] = None,
        is_pending: Optional[bool] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> list[GameEntry]:
        """Filtered listing, newest first.

        Date bounds are inclusive and compare ``YYYY-MM-DD`` strings.
        """
        query: dict[str, Any] = {}
        if username:
            query["username"] = username
        if player_name:
            query["player_name"] = player_name
        if player_tag:
            query["player_tag"] = player_tag
        if entry_type:
            query["type"] = entry_type
        if is_pending is not None:
            query["is_pending"] = is_pending
        if date_from or date_to:
            date_query: dict[str, str] = {}
            if date_from:
                date_query["$gte"] = date_from
            if date_to:
                date_query["$lte"] = date_to
            query["date"] = date_query
        return await self._find(query, limit=limit)

    async def find_latest_pending_redeem(
        self, player_tag: str, username: Optional[str] = None
    ) -> Optional[GameEntry]:
        """Most recent redeem for ``player_tag`` that still has money to pay."""
        query: dict[str, Any] = {
            "type": str(EntryType.REDEEM),
            "player_tag": player_tag,
            "remaining_pay": {"$gt": 0},
        }
        if username:
            query["username"] = username
        entries = await self._find(query, limit=1)
        return entries[0] if entries else None

    async def list_pending(self, username: Optional[str] = None) -> list[GameEntry]:
        """Open redeem payouts plus player-tag deposits with a reduction left."""
        query: dict[str, Any] = {
            "$or": [
                {"type": str(EntryType.REDEEM), "remaining_pay": {"$gt": 0}},
                {
                    "type": str(EntryType.DEPOSIT),
                    "player_tag": {"$ne": ""},
                    "reduction": {"$gt": 0},
                },
            ]
        }
        if username:
            query["username"] = username
        return await self._find(query)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_fields(
        self, entry_id: str, fields: dict[str, Any]
    ) -> Optional[GameEntry]:
        """Set ``fields`` on one entry and return the updated document."""
        if not ObjectId.is_valid(entry_id):
            return None
        doc = await self._collection.find_one_and_update(
            {"_id": ObjectId(entry_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return self._to_model(doc)
