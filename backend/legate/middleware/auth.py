"""Session resolution: bearer JWT (header or cookie) -> SessionUser."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

from bson.errors import InvalidId
from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pymongo.database import Database

from legate.config import settings
from legate.core.tracing import TracingContext
from legate.database.mongo import get_db
from legate.middleware.errors import AccessDenied
from legate.repositories.user import UserRepository

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

ACCESS_TOKEN_COOKIE = "access_token"


@dataclass(frozen=True)
class SessionUser:
    """Authenticated identity for the current request."""

    id: str
    email: str


def _unauthorized(redirect_to: Optional[str] = None) -> AccessDenied:
    return AccessDenied(status.HTTP_401_UNAUTHORIZED, "Unauthorized", redirect_to=redirect_to)


def decode_subject(token: str) -> Optional[str]:
    """Return the ``sub`` claim of a valid token, else None."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    subject = payload.get("sub")
    return str(subject) if subject else None


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Database = Depends(get_db),
) -> SessionUser:
    """Resolve the session user or fail with 401."""
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise _unauthorized(redirect_to=login_href(request.url.path))

    user_id = decode_subject(token)
    if not user_id:
        raise _unauthorized(redirect_to=login_href(request.url.path))

    try:
        user = UserRepository(db).find_by_id(user_id)
    except InvalidId:
        user = None

    if user is None or not user.email:
        logger.info("Rejected token for unknown user %s", user_id)
        raise _unauthorized(redirect_to=login_href(request.url.path))

    TracingContext.set(user_id=str(user.id))
    return SessionUser(id=str(user.id), email=user.email.strip().lower())


def login_href(callback_path: str) -> str:
    return f"/login?callbackUrl={quote(callback_path, safe='')}"
