# dormfix/routers/auth.py
from fastapi import APIRouter, Depends

from dormfix.dependencies import get_token_claims, get_user_store
from dormfix.schemas.user import UserCreate, UserLogin
from dormfix.services.users import UserStore

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# -----------------------------
# Signup
# -----------------------------
@router.post("/signup", status_code=201)
async def signup(data: UserCreate, users: UserStore = Depends(get_user_store)):
    user, token = await users.register(data)
    return {"success": True, "user": user, "token": token}


# -----------------------------
# Login
# -----------------------------
@router.post("/login")
async def login(data: UserLogin, users: UserStore = Depends(get_user_store)):
    user, token = await users.authenticate(data)
    return {"success": True, "user": user, "token": token}


# -----------------------------
# Current user (protected)
# -----------------------------
@router.get("/me")
async def read_me(claims: dict = Depends(get_token_claims), users: UserStore = Depends(get_user_store)):
    user = await users.get_current_user(claims["userId"])
    return {"success": True, "user": user}
