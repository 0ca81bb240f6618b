# dormfix/auth.py
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from dormfix.config import Settings
from dormfix.errors import AuthError

# Use argon2 for password hashing
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


# Hash password
def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


# Verify password (argon2 compares digests in constant time)
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# Burn the same hashing cost when there is no account to check against
def dummy_verify() -> None:
    pwd_context.dummy_verify()


# Create JWT token
def create_access_token(data: dict, settings: Settings, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=settings.token_expire_days))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


# Decode JWT token into {userId, email}
def decode_access_token(token: str, settings: Settings) -> dict:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise AuthError("Token expired")
    except JWTError:
        raise AuthError("Invalid token")

    user_id = payload.get("userId")
    if not user_id:
        raise AuthError("Invalid token")
    return {"userId": user_id, "email": payload.get("email")}
