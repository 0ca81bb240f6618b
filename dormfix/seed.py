# dormfix/seed.py
"""Seed the building picker and a test account: python -m dormfix.seed"""
import asyncio
import logging

from dormfix.config import Settings
from dormfix.db import create_client, ensure_indexes, get_database
from dormfix.logging_config import configure_logging
from dormfix.schemas.user import UserCreate
from dormfix.services.locations import LocationStore
from dormfix.services.users import UserStore

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS = [
    {"name": "Pearsons Hall", "type": "dorm"},
    {"name": "Yates Hall", "type": "dorm"},
    {"name": "Clark Hall", "type": "dorm"},
    {"name": "Harwood Hall", "type": "dorm"},
    {"name": "Smith Campus Center", "type": "building"},
    {"name": "Honnold Library", "type": "building"},
    {"name": "Rains Athletic Center", "type": "facility"},
]

TEST_USER = {
    "name": "Test User",
    "email": "test@dormfix.com",
    "password": "password123",
    "confirmPassword": "password123",
    "building": "Pearsons Hall",
    "room": "101",
}


async def seed(db, settings: Settings) -> None:
    locations = LocationStore(db)
    existing = {loc["name"] async for loc in db["locations"].find({}, {"name": 1})}
    for location in DEFAULT_LOCATIONS:
        if location["name"] not in existing:
            await locations.create(location["name"], location["type"])
            logger.info("Added location %s", location["name"])

    if await db["users"].find_one({"email": TEST_USER["email"]}):
        logger.info("Test user already exists: %s", TEST_USER["email"])
    else:
        await UserStore(db, settings).register(UserCreate(**TEST_USER))
        logger.info("Created test user %s / %s", TEST_USER["email"], TEST_USER["password"])


async def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings)
    settings.check()

    client = create_client(settings)
    try:
        db = get_database(client, settings)
        await ensure_indexes(db)
        await seed(db, settings)
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(main())
