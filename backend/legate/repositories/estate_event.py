"""Repository for EstateEvent entities (estate activity timeline)."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pymongo.database import Database

from legate.entities.estate_event import EstateEvent, EstateEventType

from .base import BaseRepository


class EstateEventRepository(BaseRepository[EstateEvent]):
    """Repository for the estate_events collection."""

    def __init__(self, db: Database) -> None:
        super().__init__(db, "estate_events", EstateEvent)

    def find_for_estate(
        self,
        estate_id: str,
        types: Optional[List[EstateEventType]] = None,
        before: Optional[datetime] = None,
        limit: int = 25,
    ) -> List[EstateEvent]:
        """
        Find events for an estate, newest first.

        Args:
            estate_id: Estate to read
            types: Only these event types (all when empty)
            before: Exclusive created_at cursor
            limit: Max results to return
        """
        query: Dict[str, Any] = {"estate_id": estate_id}
        if types:
            query["type"] = {"$in": [t.value for t in types]}
        if before is not None:
            query["created_at"] = {"$lt": before}

        return self.find_many(query, sort=[("created_at", -1), ("_id", -1)], limit=limit)
