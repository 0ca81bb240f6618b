# dormfix/services/tickets.py
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from dormfix.db import serialize_document, to_object_id
from dormfix.errors import NotFoundError, ValidationError
from dormfix.schemas.ticket import TicketStatus
from dormfix.services.classifier import TicketClassifier
from dormfix.services.media import MediaUploadGateway

logger = logging.getLogger(__name__)

LIST_LIMIT = 100
MAX_IMAGES = 5
CREATED_NOTE = "Ticket created"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def history_entry(status: TicketStatus, note: Optional[str] = None, timestamp: Optional[datetime] = None) -> dict:
    entry = {"status": status.value, "timestamp": timestamp or datetime.now(timezone.utc)}
    if note:
        entry["note"] = note
    return entry


def current_status(ticket: dict) -> str:
    """Status of the most recent history entry."""
    history = ticket.get("statusHistory") or []
    return history[-1]["status"] if history else ticket.get("status", TicketStatus.NEW.value)


class TicketStore:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        media: MediaUploadGateway,
        classifier: TicketClassifier,
        max_images: int = MAX_IMAGES,
    ):
        self.tickets = db["tickets"]
        self.media = media
        self.classifier = classifier
        self.max_images = max_images

    async def _upload_all(self, images: Sequence[bytes]) -> list[str]:
        # Sequential on purpose: every image must be stored before moving on
        urls = []
        for image in images:
            urls.append(await self.media.upload(image))
        return urls

    async def create(
        self,
        building: Optional[str],
        room: Optional[str],
        images: Sequence[bytes],
        location_notes: Optional[str] = None,
        user_note: Optional[str] = None,
        reporter_name: Optional[str] = None,
    ) -> dict:
        building, room = _clean(building), _clean(room)
        if not building or not room:
            raise ValidationError("Building and room are required")
        if not images:
            raise ValidationError("At least one image is required")
        if len(images) > self.max_images:
            raise ValidationError(f"A maximum of {self.max_images} images is allowed")

        user_note = _clean(user_note)

        logger.info("Uploading %d image(s) for %s %s", len(images), building, room)
        image_urls = await self._upload_all(images)

        enrichment = await self.classifier.enrich(image_urls[0], building, room, user_note)
        logger.info(
            "Ticket classified as %s/%s (%s)",
            enrichment.classification.category.value,
            enrichment.classification.severity.value,
            "model" if enrichment.from_model else "fallback",
        )

        now = datetime.now(timezone.utc)
        ticket = {
            "building": building,
            "room": room,
            "imageUrls": image_urls,
            "afterImageUrls": [],
            **enrichment.classification.to_document(),
            "status": TicketStatus.NEW.value,
            "statusHistory": [history_entry(TicketStatus.NEW, CREATED_NOTE, now)],
            "createdAt": now,
            "updatedAt": now,
        }
        for key, value in (
            ("locationNotes", _clean(location_notes)),
            ("userNote", user_note),
            ("reporterName", _clean(reporter_name)),
        ):
            if value:
                ticket[key] = value

        result = await self.tickets.insert_one(ticket)
        ticket["_id"] = result.inserted_id
        return serialize_document(ticket)

    async def list(
        self,
        status: Optional[str] = None,
        building: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[dict]:
        query = {}
        if status:
            query["status"] = status
        if building:
            query["building"] = building
        if category:
            query["category"] = category

        cursor = self.tickets.find(query).sort([("createdAt", DESCENDING), ("_id", DESCENDING)]).limit(LIST_LIMIT)
        return [serialize_document(t) async for t in cursor]

    async def _find(self, ticket_id: str) -> dict:
        oid = to_object_id(ticket_id)
        ticket = await self.tickets.find_one({"_id": oid}) if oid else None
        if not ticket:
            raise NotFoundError("Ticket not found")
        return ticket

    async def get(self, ticket_id: str) -> dict:
        return serialize_document(await self._find(ticket_id))

    async def update_status(
        self,
        ticket_id: str,
        status: Optional[str] = None,
        note: Optional[str] = None,
        after_images: Sequence[bytes] = (),
    ) -> dict:
        ticket = await self._find(ticket_id)

        if len(after_images) > self.max_images:
            raise ValidationError(f"A maximum of {self.max_images} images is allowed")

        now = datetime.now(timezone.utc)
        update = {"$set": {"updatedAt": now}}

        if after_images:
            update["$set"]["afterImageUrls"] = await self._upload_all(after_images)

        new_status = TicketStatus.parse(status)
        if new_status is not None:
            # status and history move together in one atomic update
            update["$set"]["status"] = new_status.value
            update["$push"] = {"statusHistory": history_entry(new_status, _clean(note), now)}
        elif status:
            logger.warning("Ignoring unrecognized status %r for ticket %s", status, ticket_id)

        if after_images and new_status is None:
            logger.info("After photos recorded for ticket %s; status stays %s", ticket_id, current_status(ticket))

        updated = await self.tickets.find_one_and_update(
            {"_id": ticket["_id"]}, update, return_document=ReturnDocument.AFTER
        )
        if not updated:
            raise NotFoundError("Ticket not found")
        return serialize_document(updated)

    async def delete(self, ticket_id: str) -> None:
        oid = to_object_id(ticket_id)
        result = await self.tickets.delete_one({"_id": oid}) if oid else None
        if result is None or result.deleted_count == 0:
            raise NotFoundError("Ticket not found")
