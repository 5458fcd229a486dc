"""MongoDB client lifecycle (motor)."""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.config import settings

logger = logging.getLogger(__name__)


class MongoDB:
    """Holds the process-wide motor client; motor manages the connection pool."""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        if self.client is not None:
            return

        self.client = AsyncIOMotorClient(
            settings.MONGODB_URI,
            maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
            serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT_MS,
            tz_aware=True,
        )
        self.db = self.client[settings.MONGODB_DATABASE]

        # Fail fast if the server is unreachable
        await self.client.admin.command("ping")
        logger.info(f"Connected to MongoDB database '{settings.MONGODB_DATABASE}'")

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed")
        self.client = None
        self.db = None


mongodb = MongoDB()


def get_database() -> AsyncIOMotorDatabase:
    """Database handle; the lifespan hook must have connected first."""
    if mongodb.db is None:
        raise RuntimeError("MongoDB is not connected")
    return mongodb.db
