# dormfix/services/users.py
import logging
from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from starlette.concurrency import run_in_threadpool

from dormfix.auth import create_access_token, dummy_verify, get_password_hash, verify_password
from dormfix.config import Settings
from dormfix.db import serialize_document, to_object_id
from dormfix.errors import AuthError, NotFoundError, ValidationError
from dormfix.schemas.user import UserCreate, UserLogin

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
MIN_PASSWORD_LENGTH = 6


def public_user(user: dict) -> dict:
    """User document as returned to clients: no password, string id."""
    return serialize_document({k: v for k, v in user.items() if k != "password"})


class UserStore:
    def __init__(self, db: AsyncIOMotorDatabase, settings: Settings):
        self.users = db["users"]
        self.settings = settings

    def issue_token(self, user: dict) -> str:
        return create_access_token({"userId": str(user["_id"]), "email": user["email"]}, self.settings)

    async def register(self, data: UserCreate) -> tuple[dict, str]:
        name = (data.name or "").strip()
        if not name or not data.email or not data.password:
            raise ValidationError("Name, email, and password are required")
        if data.password != data.confirmPassword:
            raise ValidationError("Passwords do not match")
        if len(data.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        email = str(data.email)
        if await self.users.find_one({"email": email}):
            raise ValidationError("Email already registered")

        now = datetime.now(timezone.utc)
        user = {
            "name": name,
            "email": email,
            "password": await run_in_threadpool(get_password_hash, data.password),
            "createdAt": now,
            "updatedAt": now,
        }
        for field in ("building", "room"):
            value = (getattr(data, field) or "").strip()
            if value:
                user[field] = value

        try:
            result = await self.users.insert_one(user)
        except DuplicateKeyError:
            # lost a race with a concurrent signup
            raise ValidationError("Email already registered")
        user["_id"] = result.inserted_id

        logger.info("Registered user %s", user["_id"])
        return public_user(user), self.issue_token(user)

    async def authenticate(self, data: UserLogin) -> tuple[dict, str]:
        if not data.email or not data.password:
            raise ValidationError("Email and password are required")

        user = await self.users.find_one({"email": str(data.email)})
        if user is None:
            await run_in_threadpool(dummy_verify)
            raise AuthError(INVALID_CREDENTIALS)
        if not await run_in_threadpool(verify_password, data.password, user["password"]):
            raise AuthError(INVALID_CREDENTIALS)

        return public_user(user), self.issue_token(user)

    async def get_current_user(self, user_id: str) -> dict:
        oid = to_object_id(user_id)
        user = await self.users.find_one({"_id": oid}) if oid else None
        if user is None:
            raise NotFoundError("User not found")
        return public_user(user)
