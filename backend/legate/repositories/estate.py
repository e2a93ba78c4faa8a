"""
Estate Repository - Database operations for estates and their embedded
collaborators and invites.
"""

from typing import List, Optional

from bson import ObjectId
from pymongo.database import Database

from legate.entities.estate import Estate
from legate.utils.datetime import utc_now

from .base import BaseRepository

CONFLICT_DETAIL = "Estate was modified concurrently. Please retry."


class EstateConflictError(Exception):
    """The estate changed between load and save."""

    def __init__(self, estate_id: ObjectId, expected_revision: int):
        self.estate_id = estate_id
        self.expected_revision = expected_revision
        super().__init__(
            f"Estate {estate_id} was modified concurrently (expected revision {expected_revision})"
        )


class EstateRepository(BaseRepository[Estate]):
    """Repository for Estate entities."""

    def __init__(self, db: Database):
        super().__init__(db, "estates", Estate)

    def find_by_invite_token(
        self, token: str, estate_id: Optional[ObjectId] = None
    ) -> Optional[Estate]:
        """Find the estate holding an invite token, optionally scoped to one estate."""
        query: dict = {"invites": {"$elemMatch": {"token": token}}}
        if estate_id is not None:
            query["_id"] = estate_id
        return self.find_one(query)

    def list_for_member(self, user_id: str, limit: int = 200) -> List[Estate]:
        """Estates the user owns or collaborates on, newest first."""
        return self.find_many(
            {"$or": [{"owner_id": user_id}, {"collaborators.user_id": user_id}]},
            sort=[("created_at", -1)],
            limit=limit,
        )

    def create(self, estate: Estate) -> Estate:
        estate.revision = 0
        return self.insert_one(estate)

    def save(self, estate: Estate) -> Estate:
        """
        Write back the access-control state of a loaded estate.

        The update only applies if the stored revision still equals the one
        that was loaded; otherwise EstateConflictError is raised and nothing
        is written.
        """
        now = utc_now()
        expected = estate.revision
        data = estate.model_dump(include={"label", "status", "collaborators", "invites"})
        result = self.collection.update_one(
            {"_id": estate.id, "revision": expected},
            {"$set": {**data, "updated_at": now}, "$inc": {"revision": 1}},
        )
        if result.matched_count == 0:
            raise EstateConflictError(estate.id, expected)

        estate.revision = expected + 1
        estate.updated_at = now
        return estate
