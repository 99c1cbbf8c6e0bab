"""Game counter Data Access Layer -- MongoDB operations for game_counters.

Provides async CRUD for GameCounter documents keyed by their stable
numeric ``game_id``. Counter writes go through ``compare_and_set`` so the
service layer can serialize concurrent read-modify-write cycles on the
same game with an optimistic ``version`` check.
"""

import logging
import re
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from coinbook.models.game import GameCounter

logger = logging.getLogger("coinbook.dal.games")

COLLECTION = "game_counters"
SEQUENCES = "sequences"


class GameCounterDAL:
    """Data access layer for the game_counters collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[COLLECTION]
        self._sequences = db[SEQUENCES]

    @staticmethod
    def _to_model(doc: dict) -> GameCounter:
        doc["_id"] = str(doc["_id"])
        return GameCounter(**doc)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def next_game_id(self) -> int:
        """Allocate the next numeric game id from an atomic sequence."""
        doc = await self._sequences.find_one_and_update(
            {"_id": "game_id"},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])

    async def create(self, counter: GameCounter) -> GameCounter:
        """Insert a new game counter and return it with its generated id.

        Raises:
            pymongo.errors.DuplicateKeyError: ``game_id`` or ``name`` taken.
        """
        doc = counter.to_mongo_dict()
        result = await self._collection.insert_one(doc)
        counter.id = str(result.inserted_id)
        logger.info("Created game %d (%s)", counter.game_id, counter.name)
        return counter

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_game_id(self, game_id: int) -> Optional[GameCounter]:
        doc = await self._collection.find_one({"game_id": game_id})
        if doc is None:
            return None
        return self._to_model(doc)

    async def get_by_name(self, name: str) -> Optional[GameCounter]:
        doc = await self._collection.find_one({"name": name})
        if doc is None:
            return None
        return self._to_model(doc)

    async def list_all(self) -> list[GameCounter]:
        """All games in registration order."""
        cursor = self._collection.find().sort("created_at", 1)
        games: list[GameCounter] = []
        async for doc in cursor:
            games.append(self._to_model(doc))
        return games

    async def search_names(self, query: str) -> list[str]:
        """Distinct game names containing ``query`` (case-insensitive)."""
        names = await self._collection.distinct(
            "name", {"name": {"$regex": re.escape(query), "$options": "i"}}
        )
        return [n for n in names if isinstance(n, str) and n.strip()]

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def compare_and_set(
        self,
        game_id: int,
        expected_version: int,
        fields: dict[str, Any],
    ) -> bool:
        """Write ``fields`` only if the stored version is still ``expected_version``.

        The version is incremented in the same single-document update, so
        exactly one of several racing writers that read the same version
        succeeds.

        Returns:
            True if the write was applied, False on a version mismatch
            (or if the game vanished).
        """
        result = await self._collection.update_one(
            {"game_id": game_id, "version": expected_version},
            {"$set": fields, "$inc": {"version": 1}},
        )
        return result.modified_count > 0

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete(self, game_id: int) -> Optional[GameCounter]:
        """Delete a game counter and return the removed document."""
        doc = await self._collection.find_one_and_delete({"game_id": game_id})
        if doc is None:
            return None
        logger.info("Deleted game %d", game_id)
        return self._to_model(doc)
