from __future__ import annotations

from datetime import datetime
from typing import Optional

from .base import BaseEntity


class User(BaseEntity):
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    last_login_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
