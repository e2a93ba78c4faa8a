"""Authentication utilities: create JWT access tokens for app sessions."""
from __future__ import annotations

from datetime import timedelta
from typing import Any, Optional

from jose import jwt

from legate.config import settings
from legate.utils.datetime import utc_now


def create_access_token(subject: str | int, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    expire = utc_now() + expires_delta
    payload: dict[str, Any] = {"sub": str(subject), "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
