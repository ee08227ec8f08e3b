import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from marketplace.core.config import get_settings
from marketplace.repositories.conversation_repository import ConversationRepository
from marketplace.repositories.message_repository import MessageRepository


logger = logging.getLogger(__name__)

_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


async def connect_to_mongo() -> None:
    global _client, _database
    settings = get_settings()
    _client = AsyncIOMotorClient(settings.mongo_url, tz_aware=True)
    _database = _client[settings.mongo_db_name]
    await ConversationRepository(_database).ensure_indexes()
    await MessageRepository(_database).ensure_indexes()
    logger.info("Connected to MongoDB database %s", settings.mongo_db_name)


async def close_mongo_connection() -> None:
    global _client, _database
    if _client is not None:
        _client.close()
        logger.info("Closed MongoDB connection")
    _client = None
    _database = None


def get_database() -> AsyncIOMotorDatabase:
    if _database is None:
        raise RuntimeError("MongoDB connection has not been initialised")
    return _database


async def mongo_db_dependency() -> AsyncIOMotorDatabase:
    return get_database()
