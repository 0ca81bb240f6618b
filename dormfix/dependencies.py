# dormfix/dependencies.py
import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from dormfix.auth import decode_access_token
from dormfix.config import Settings
from dormfix.errors import AuthError
from dormfix.services.classifier import TicketClassifier
from dormfix.services.locations import LocationStore
from dormfix.services.media import MediaUploadGateway
from dormfix.services.tickets import TicketStore
from dormfix.services.users import UserStore

# auto_error off so a missing header gets our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request) -> AsyncIOMotorDatabase:
    return request.app.state.db


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http


def get_media_gateway(
    http: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> MediaUploadGateway:
    return MediaUploadGateway(http, settings)


def get_classifier(
    request: Request,
    http: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> TicketClassifier:
    return TicketClassifier(request.app.state.openai, http, settings.vision_model)


def get_ticket_store(
    db: AsyncIOMotorDatabase = Depends(get_db),
    media: MediaUploadGateway = Depends(get_media_gateway),
    classifier: TicketClassifier = Depends(get_classifier),
    settings: Settings = Depends(get_settings),
) -> TicketStore:
    return TicketStore(db, media, classifier, max_images=settings.max_upload_files)


def get_location_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> LocationStore:
    return LocationStore(db)


def get_user_store(
    db: AsyncIOMotorDatabase = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserStore:
    return UserStore(db, settings)


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> dict:
    if credentials is None or not credentials.credentials:
        raise AuthError("No token provided")
    return decode_access_token(credentials.credentials, settings)
