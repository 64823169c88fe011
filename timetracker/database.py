"""MongoDB database connection using Motor (async driver)."""
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING

from timetracker.config import settings

logger = logging.getLogger(__name__)


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Connect to MongoDB and make sure the booking indexes exist."""
        self.client = AsyncIOMotorClient(settings.mongodb_url, tz_aware=True)
        self.db = self.client[settings.mongodb_db_name]
        await self.db["time_bookings"].create_index(
            [("user_id", ASCENDING), ("project_id", ASCENDING), ("started_at", ASCENDING)]
        )
        await self.db["users"].create_index("email", unique=True)
        await self.db["project_activities"].create_index(
            [("project_id", ASCENDING), ("activity_id", ASCENDING)], unique=True
        )
        logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")


# Global database instance
database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    if database.db is None:
        raise RuntimeError("Database not connected")
    return database.db
