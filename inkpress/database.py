import os
import logging
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from pymongo.server_api import ServerApi

logger = logging.getLogger(__name__)

class Database:
    client: AsyncIOMotorClient = None
    database = None

db = Database()

async def get_database():
    return db.database

async def connect_to_mongo():
    """Create database connection"""
    mongodb_uri = os.getenv("MONGODB_URI")
    database_name = os.getenv("DATABASE_NAME", "inkpress")

    if not mongodb_uri:
        logger.warning("No MONGODB_URI found in environment variables")
        return

    db.client = AsyncIOMotorClient(
        mongodb_uri,
        server_api=ServerApi('1'),
        connectTimeoutMS=30000,  # 30 second connection timeout
        serverSelectionTimeoutMS=30000,  # 30 second server selection timeout
        socketTimeoutMS=30000,  # 30 second socket timeout
    )
    db.database = db.client[database_name]

    # Test the connection
    try:
        await db.client.admin.command('ping')
        logger.info("Successfully connected to MongoDB database %s", database_name)
    except Exception:
        logger.exception("Error connecting to MongoDB")
        raise

    await ensure_indexes(db.database)

async def ensure_indexes(database):
    """Create the unique lookups the natural keys rely on"""
    await database.users.create_index([("personal_info.email", ASCENDING)], unique=True)
    await database.users.create_index([("personal_info.username", ASCENDING)], unique=True)
    await database.blogs.create_index([("blog_id", ASCENDING)], unique=True)
    await database.comments.create_index([("blog_id", ASCENDING), ("commentedAt", ASCENDING)])
    await database.notifications.create_index([("notification_for", ASCENDING), ("createdAt", ASCENDING)])

async def close_mongo_connection():
    """Close database connection"""
    if db.client:
        db.client.close()
        logger.info("Disconnected from MongoDB")
