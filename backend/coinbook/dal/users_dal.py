"""User and login session Data Access Layer."""

import logging
from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from coinbook.models.user import LoginSession, User

logger = logging.getLogger("coinbook.dal.users")

USERS = "users"
SESSIONS = "login_sessions"


class UserDAL:
    """Data access layer for the users collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[USERS]

    @staticmethod
    def _to_model(doc: dict) -> User:
        doc["_id"] = str(doc["_id"])
        return User(**doc)

    async def create(self, user: User) -> User:
        """Insert a user.

        Raises:
            pymongo.errors.DuplicateKeyError: The email is already registered.
        """
        doc = user.to_mongo_dict()
        result = await self._collection.insert_one(doc)
        user.id = str(result.inserted_id)
        logger.info("Created user %s (%s, role=%s)", user.id, user.username, user.role)
        return user

    async def get_by_id(self, user_id: str) -> Optional[User]:
        if not ObjectId.is_valid(user_id):
            return None
        doc = await self._collection.find_one({"_id": ObjectId(user_id)})
        if doc is None:
            return None
        return self._to_model(doc)

    async def get_by_email(self, email: str) -> Optional[User]:
        doc = await self._collection.find_one({"email": email})
        if doc is None:
            return None
        return self._to_model(doc)

    async def list_all(self) -> list[User]:
        cursor = self._collection.find().sort([("created_at", -1), ("_id", -1)])
        users: list[User] = []
        async for doc in cursor:
            users.append(self._to_model(doc))
        return users

    async def update_fields(self, user_id: str, fields: dict[str, Any]) -> Optional[User]:
        if not ObjectId.is_valid(user_id):
            return None
        doc = await self._collection.find_one_and_update(
            {"_id": ObjectId(user_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return self._to_model(doc)

    async def delete(self, user_id: str) -> bool:
        if not ObjectId.is_valid(user_id):
            return False
        result = await self._collection.delete_one({"_id": ObjectId(user_id)})
        if result.deleted_count > 0:
            logger.info("Deleted user %s", user_id)
        return result.deleted_count > 0


class LoginSessionDAL:
    """Data access layer for the login_sessions collection."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db[SESSIONS]

    @staticmethod
    def _to_model(doc: dict) -> LoginSession:
        doc["_id"] = str(doc["_id"])
        return LoginSession(**doc)

    async def create(self, session: LoginSession) -> LoginSession:
        doc = session.to_mongo_dict()
        result = await self._collection.insert_one(doc)
        session.id = str(result.inserted_id)
        return session

    async def get_by_id(self, session_id: str) -> Optional[LoginSession]:
        if not ObjectId.is_valid(session_id):
            return None
        doc = await self._collection.find_one({"_id": ObjectId(session_id)})
        if doc is None:
            return None
        return self._to_model(doc)

    async def latest_open(self, user_id: str) -> Optional[LoginSession]:
        cursor = (
            self._collection.find({"user_id": user_id, "sign_out_at": None})
            .sort([("sign_in_at", -1), ("_id", -1)])
            .limit(1)
        )
        async for doc in cursor:
            return self._to_model(doc)
        return None

    async def close(self, session_id: str, at: datetime) -> Optional[LoginSession]:
        """Stamp ``sign_out_at`` on an open session.

        Returns the session as stored afterwards, or None if it does not
        exist. An already-closed session is returned unchanged.
        """
        if not ObjectId.is_valid(session_id):
            return None
        await self._collection.update_one(
            {"_id": ObjectId(session_id), "sign_out_at": None},
            {"$set": {"sign_out_at": at}},
        )
        return await self.get_by_id(session_id)

    async def list_recent(
        self, limit: int, username: Optional[str] = None
    ) -> list[LoginSession]:
        query: dict[str, Any] = {}
        if username:
            query["username"] = username
        cursor = (
            self._collection.find(query)
            .sort([("created_at", -1), ("_id", -1)])
            .limit(limit)
        )
        sessions: list[LoginSession] = []
        async for doc in cursor:
            sessions.append(self._to_model(doc))
        return sessions
