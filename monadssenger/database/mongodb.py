from typing import List, Optional
import logging
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from beanie import init_beanie, Document

from monadssenger.models.documents import MessageDocument, TypingIndicatorDocument

# MongoDB client and database
client: Optional[AsyncIOMotorClient] = None
database: Optional[AsyncIOMotorDatabase] = None

logger = logging.getLogger(__name__)

DOCUMENT_MODELS: List[type[Document]] = [
    MessageDocument,
    TypingIndicatorDocument,
]


async def connect_to_mongo(mongo_url: str, db_name: str):
    """Create database connection"""
    global client, database
    try:
        client = AsyncIOMotorClient(
            mongo_url,
            maxPoolSize=10,
            minPoolSize=1,
            maxIdleTimeMS=30000,
            waitQueueTimeoutMS=5000,
            serverSelectionTimeoutMS=5000,
        )
        database = client[db_name]
        logger.info("Connected to MongoDB")
    except Exception as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
        raise


async def init_mongodb(mongo_url: str, db_name: str) -> AsyncIOMotorDatabase:
    """Initialize MongoDB with Beanie"""
    try:
        await connect_to_mongo(mongo_url, db_name)
        await init_beanie(database=database, document_models=DOCUMENT_MODELS)
        logger.info("MongoDB initialized with Beanie successfully")
        return database
    except Exception as e:
        logger.error(f"Failed to initialize MongoDB: {e}")
        raise


async def check_mongo_connection() -> bool:
    """Check MongoDB connection"""
    try:
        if client:
            await client.admin.command('ping')
            return True
        return False
    except Exception as e:
        logger.error(f"MongoDB connection check failed: {e}")
        return False


async def close_mongo_connection():
    """Close MongoDB connection"""
    global client, database
    if client:
        client.close()
        client = None
        database = None
        logger.info("MongoDB connection closed")
