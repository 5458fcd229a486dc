"""MongoDB storage service for technician accounts."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import OperationFailure

from app.config import settings
from app.models.user import USER_INDEXES
from app.utils.helpers import escape_regex

logger = logging.getLogger(__name__)


class MongoUserStorage:
    """Technician accounts. Users are seeded once and never deleted."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection: AsyncIOMotorCollection = db[settings.MONGODB_USERS_COLLECTION]

    async def create_indexes(self) -> None:
        try:
            await self.collection.create_indexes(USER_INDEXES)
        except OperationFailure as e:
            logger.warning(f"Index creation error (may already exist): {e}")

    async def find_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive exact lookup."""
        if not username:
            return None
        pattern = f"^{escape_regex(username.strip())}$"
        return await self.collection.find_one({"username": {"$regex": pattern, "$options": "i"}})

    async def list_users(self) -> List[Dict[str, Any]]:
        cursor = self.collection.find(
            {},
            {"_id": 0, "username": 1, "displayName": 1, "role": 1},
        ).sort("username", 1)
        return await cursor.to_list(length=None)

    async def update_password(self, username: str, password_hash: str, now: datetime) -> bool:
        result = await self.collection.update_one(
            {"username": username},
            {"$set": {"password": password_hash, "updatedAt": now}},
        )
        return result.matched_count > 0

    async def count(self) -> int:
        return await self.collection.count_documents({})

    async def insert_many(self, documents: List[Dict[str, Any]]) -> int:
        if not documents:
            return 0
        result = await self.collection.insert_many(documents)
        return len(result.inserted_ids)
