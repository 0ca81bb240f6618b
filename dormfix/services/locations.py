# dormfix/services/locations.py
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from dormfix.db import serialize_document
from dormfix.errors import ValidationError
from dormfix.schemas.location import LocationType


class LocationStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.locations = db["locations"]

    async def list(self) -> list[dict]:
        """Active locations, alphabetical."""
        cursor = self.locations.find({"isActive": True}).sort("name", ASCENDING)
        return [serialize_document(loc) async for loc in cursor]

    async def create(self, name: Optional[str], type: Optional[str] = None, address: Optional[str] = None) -> dict:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Location name is required")

        try:
            location_type = LocationType(type or LocationType.DORM.value)
        except ValueError:
            raise ValidationError(
                "Invalid location type", [t.value for t in LocationType]
            )

        now = datetime.now(timezone.utc)
        location = {
            "name": name,
            "type": location_type.value,
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        }
        if address and address.strip():
            location["address"] = address.strip()

        result = await self.locations.insert_one(location)
        location["_id"] = result.inserted_id
        return serialize_document(location)
