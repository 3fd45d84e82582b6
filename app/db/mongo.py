import logging
from contextlib import contextmanager
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError

from app.core.config import settings
from app.utils.payment_validation import StoreUnavailableError

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    # tz_aware so createdAt sorts never mix naive and aware datetimes
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def disconnect_from_mongo():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    mongodb.client = None
    mongodb.db = None
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    receipts = mongodb.db[settings.RECEIPTS_COLLECTION]
    payments = mongodb.db[settings.PAYMENTS_COLLECTION]

    # Unpaid receipts per customer, oldest first (payment cascade)
    await receipts.create_index([
        ("customerName", ASCENDING),
        ("isPaid", ASCENDING),
        ("createdAt", ASCENDING),
    ])
    await receipts.create_index([("customerName", ASCENDING), ("createdAt", ASCENDING)])

    # Payment history
    await payments.create_index([("receiptId", ASCENDING), ("timestamp", DESCENDING)])
    await payments.create_index([("customerName", ASCENDING), ("timestamp", DESCENDING)])
    await payments.create_index([("timestamp", DESCENDING)])

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    if mongodb.db is None:
        raise StoreUnavailableError("MongoDB not initialized")
    return mongodb.db


@contextmanager
def driver_errors(action: str, error_cls=StoreUnavailableError):
    """
    Translate pymongo errors into the payment error taxonomy.

    Connection problems are always StoreUnavailableError; any other driver
    error becomes `error_cls` (CommitFailedError around writes).
    """
    try:
        yield
    except ConnectionFailure as exc:
        logger.error("MongoDB unreachable during %s: %s", action, exc)
        raise StoreUnavailableError(f"Record store unavailable: {exc}") from exc
    except PyMongoError as exc:
        logger.error("MongoDB error during %s: %s", action, exc)
        raise error_cls(f"{action} failed: {exc}") from exc
