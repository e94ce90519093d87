"""Request dependencies: DB session, auth guard and payment gateway."""
from typing import Optional

import jwt
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from . import crud, models
from .auth import decode_access_token, extract_token
from .db import get_db
from .errors import Forbidden, Unauthenticated, UserNotFound
from .payments import PaymentGateway, build_gateway


def resolve_user(db: Session, token: str) -> models.User:
    if not token:
        raise Unauthenticated()
    try:
        claims = decode_access_token(token)
    except jwt.PyJWTError:
        raise Unauthenticated()
    user = crud.get_user(db, claims.get("sub") or "")
    if not user:
        raise UserNotFound()
    return user


def require_sign_in(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> models.User:
    return resolve_user(db, extract_token(authorization))


def require_admin(user: models.User = Depends(require_sign_in)) -> models.User:
    if not user.is_admin:
        raise Forbidden()
    return user


async def json_object(request: Request) -> dict:
    """The JSON body as a dict; {} when it is missing, malformed or not an object.

    Declared after the auth guard so that guard answers first.
    """
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


_gateway: Optional[PaymentGateway] = None


def get_gateway() -> PaymentGateway:
    global _gateway
    if _gateway is None:
        _gateway = build_gateway()
    return _gateway
