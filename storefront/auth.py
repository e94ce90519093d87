import time
from typing import Optional

import jwt
from passlib.context import CryptContext

from .config import get_settings

# Use pbkdf2_sha256 as default to avoid bcrypt 72-byte limitation in some envs
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
DAY_SECONDS = 60 * 60 * 24


def create_access_token(user_id: str, expires_delta: Optional[int] = None) -> str:
    now = int(time.time())
    exp = now + (expires_delta or get_settings().jwt_expires_days * DAY_SECONDS)
    payload = {"sub": str(user_id), "iat": now, "exp": exp}
    return jwt.encode(payload, get_settings().jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Return the claims of a valid token; raises jwt.PyJWTError otherwise."""
    return jwt.decode(token, get_settings().jwt_secret, algorithms=[ALGORITHM])


def extract_token(authorization: Optional[str]) -> str:
    """The storefront sends the raw token; a "Bearer " prefix is tolerated."""
    if not authorization:
        return ""
    value = authorization.strip()
    if value.lower().startswith("bearer "):
        value = value.split(None, 1)[1]
    return value


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)
