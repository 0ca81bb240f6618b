# dormfix/routers/tickets.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from dormfix.config import Settings
from dormfix.dependencies import get_settings, get_ticket_store
from dormfix.errors import ValidationError
from dormfix.schemas.ticket import StatusUpdate, TicketStatus
from dormfix.services.tickets import TicketStore

router = APIRouter(prefix="/api/tickets", tags=["Tickets"])

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


# -----------------------------
# Helper: validate and read uploaded images
# -----------------------------
async def read_images(files, settings: Settings) -> list[bytes]:
    files = list(files or [])
    if len(files) > settings.max_upload_files:
        raise ValidationError(f"A maximum of {settings.max_upload_files} images is allowed")

    images = []
    for upload in files:
        if not (upload.content_type or "").startswith("image/"):
            raise ValidationError("Only image files are allowed", upload.filename)
        data = await upload.read()
        if len(data) > settings.max_upload_bytes:
            limit_mb = settings.max_upload_bytes // (1024 * 1024)
            raise ValidationError(f"Images must be {limit_mb}MB or smaller", upload.filename)
        images.append(data)
    return images


# -----------------------------
# Helper: status body may be JSON or multipart with after photos
# -----------------------------
async def read_status_request(request: Request, settings: Settings) -> tuple[Optional[str], Optional[str], list[bytes]]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        files = [f for f in form.getlist("afterImages") if isinstance(f, StarletteUploadFile)]
        status, note = form.get("status"), form.get("note")
        return (
            status if isinstance(status, str) else None,
            note if isinstance(note, str) else None,
            await read_images(files, settings),
        )

    body = await request.body()
    if not body:
        return None, None, []
    try:
        data = StatusUpdate.model_validate_json(body)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid request", [e["msg"] for e in exc.errors()])
    return data.status, data.note, []


# -----------------------------
# CREATE Ticket
# -----------------------------
@router.post("", status_code=201)
async def create_ticket(
    building: Optional[str] = Form(None),
    room: Optional[str] = Form(None),
    locationNotes: Optional[str] = Form(None),
    userNote: Optional[str] = Form(None),
    reporterName: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    store: TicketStore = Depends(get_ticket_store),
    settings: Settings = Depends(get_settings),
):
    image_bytes = await read_images(images, settings)
    ticket = await store.create(
        building,
        room,
        image_bytes,
        location_notes=locationNotes,
        user_note=userNote,
        reporter_name=reporterName,
    )
    return {"success": True, "ticket": ticket}


# -----------------------------
# LIST Tickets
# -----------------------------
@router.get("")
async def list_tickets(
    status: Optional[str] = Query(None),
    building: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    store: TicketStore = Depends(get_ticket_store),
):
    tickets = await store.list(status=status, building=building, category=category)
    return {"success": True, "count": len(tickets), "tickets": tickets}


# -----------------------------
# GET Ticket Detail
# -----------------------------
@router.get("/{ticket_id}")
async def get_ticket_detail(ticket_id: str, store: TicketStore = Depends(get_ticket_store)):
    return {"success": True, "ticket": await store.get(ticket_id)}


# -----------------------------
# UPDATE Ticket Status
# -----------------------------
@router.patch("/{ticket_id}/status")
async def update_ticket_status(
    ticket_id: str,
    request: Request,
    store: TicketStore = Depends(get_ticket_store),
    settings: Settings = Depends(get_settings),
):
    status, note, after_images = await read_status_request(request, settings)
    ticket = await store.update_status(ticket_id, status, note, after_images)
    return {"success": True, "ticket": ticket}


# -----------------------------
# RESOLVE Ticket (after photos, status forced)
# -----------------------------
@router.patch("/{ticket_id}/resolve")
async def resolve_ticket(
    ticket_id: str,
    request: Request,
    store: TicketStore = Depends(get_ticket_store),
    settings: Settings = Depends(get_settings),
):
    _, note, after_images = await read_status_request(request, settings)
    ticket = await store.update_status(ticket_id, TicketStatus.RESOLVED.value, note, after_images)
    return {"success": True, "ticket": ticket}


# -----------------------------
# DELETE Ticket
# -----------------------------
@router.delete("/{ticket_id}")
async def delete_ticket(ticket_id: str, store: TicketStore = Depends(get_ticket_store)):
    await store.delete(ticket_id)
    return {"success": True, "message": "Ticket deleted"}
