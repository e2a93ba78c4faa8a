"""Repository for users (users collection)."""

from typing import Optional

from pymongo.database import Database

from legate.entities.user import User

from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for users collection."""

    def __init__(self, db: Database):
        super().__init__(db, "users", User)

    def find_by_email(self, email: str) -> Optional[User]:
        """Find user by (lower-cased) email."""
        return self.find_one({"email": email.strip().lower()})
