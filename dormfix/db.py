# dormfix/db.py
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from dormfix.config import Settings


def create_client(settings: Settings) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.mongodb_uri)


def get_database(client: AsyncIOMotorClient, settings: Settings) -> AsyncIOMotorDatabase:
    # Explicitly pick the database, whatever the URI path says
    return client[settings.database_name]


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db["users"].create_index("email", unique=True)
    await db["tickets"].create_index([("status", ASCENDING), ("createdAt", DESCENDING)])
    await db["tickets"].create_index([("building", ASCENDING), ("room", ASCENDING)])
    await db["locations"].create_index([("isActive", ASCENDING), ("name", ASCENDING)])


# -----------------------------
# Helper: Convert ObjectId to string (recursive for nested dicts/lists)
# -----------------------------
def serialize_document(document):
    if not document:
        return None

    def serialize(obj):
        if isinstance(obj, dict):
            return {k: serialize(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [serialize(i) for i in obj]
        elif isinstance(obj, ObjectId):
            return str(obj)
        else:
            return obj

    return serialize(document)


def to_object_id(value: str) -> ObjectId | None:
    """Parse a path id; malformed ids are treated as unknown."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None
