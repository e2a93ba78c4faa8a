"""
Estate Event Service - audit/timeline writes and reads.

Writes go through ``EstateEventLogger``, a best-effort side channel: the
mutation it records has already been persisted, so a failed write is logged
and dropped rather than reported to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from fastapi import HTTPException, status
from pymongo.database import Database

from legate.dtos.estate_event import EstateEventItem, EstateEventListResponse
from legate.entities.estate import Estate
from legate.entities.estate_event import EstateEvent, EstateEventType, normalize_event_type
from legate.middleware.auth import SessionUser
from legate.repositories.estate import EstateRepository
from legate.repositories.estate_event import EstateEventRepository
from legate.services.estate_access import EstateAccessService
from legate.utils.datetime import parse_datetime

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100
MAX_NOTE_LENGTH = 5000


class EstateEventLogger:
    """Append estate events without ever failing the caller."""

    def __init__(
        self,
        db: Optional[Database] = None,
        repo: Optional[EstateEventRepository] = None,
        max_attempts: int = 1,
    ):
        if repo is None and db is None:
            raise ValueError("EstateEventLogger needs a database or a repository")
        self.repo = repo or EstateEventRepository(db)
        self.max_attempts = max(1, max_attempts)

    def log(
        self,
        estate_id: str,
        owner_id: str,
        event_type: EstateEventType | str,
        summary: str,
        detail: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Optional[EstateEvent]:
        """Record one event. Returns the stored event, or None if every attempt failed."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                event = EstateEvent(
                    estate_id=str(estate_id),
                    owner_id=str(owner_id),
                    type=event_type,
                    summary=summary,
                    detail=detail,
                    meta=meta,
                )
                return self.repo.insert_one(event)
            except Exception as exc:
                logger.warning(
                    "Failed to log estate event %s for estate %s (attempt %d/%d): %s",
                    event_type,
                    estate_id,
                    attempt,
                    self.max_attempts,
                    exc,
                )
        return None

    def log_for_estate(
        self,
        estate: Estate,
        event_type: EstateEventType | str,
        summary: str,
        detail: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Optional[EstateEvent]:
        return self.log(
            estate_id=str(estate.id),
            owner_id=str(estate.owner_id),
            event_type=event_type,
            summary=summary,
            detail=detail,
            meta=meta,
        )


def parse_limit(value: Optional[str], fallback: int = DEFAULT_PAGE_SIZE) -> int:
    try:
        n = int(value) if value else fallback
    except ValueError:
        n = fallback
    return max(1, min(MAX_PAGE_SIZE, n))


def parse_types(values: Iterable[str]) -> List[EstateEventType]:
    """Accept repeated params and/or CSV; aliases are normalized."""
    raw: List[str] = []
    for value in values:
        raw.extend(part.strip() for part in value.split(",") if part.strip())
    types: List[EstateEventType] = []
    for item in raw:
        normalized = normalize_event_type(item)
        if normalized not in types:
            types.append(normalized)
    return types


class EstateEventService:
    """Read the activity timeline (viewer) and add timeline notes (editor)."""

    def __init__(
        self,
        db: Database,
        repo: Optional[EstateEventRepository] = None,
        event_logger: Optional[EstateEventLogger] = None,
        estate_repo: Optional[EstateRepository] = None,
    ):
        self.db = db
        self.repo = repo or EstateEventRepository(db)
        self.event_logger = event_logger or EstateEventLogger(repo=self.repo)
        self.access = EstateAccessService(db, estate_repo)

    def list_events(
        self,
        estate_id: str,
        user: SessionUser,
        limit: int = DEFAULT_PAGE_SIZE,
        cursor: Optional[str] = None,
        types: Optional[List[EstateEventType]] = None,
    ) -> EstateEventListResponse:
        """
        Newest-first page of events.

        ``cursor`` is the ISO created_at of the last event on the previous
        page; a malformed cursor is ignored.
        """
        access = self.access.require_viewer(estate_id, user.id)
        before = parse_datetime(cursor.strip()) if cursor and cursor.strip() else None
        events = self.repo.find_for_estate(
            access.estate_id, types=types or None, before=before, limit=limit
        )

        next_cursor = None
        if len(events) == limit and events:
            next_cursor = events[-1].created_at.isoformat()

        return EstateEventListResponse(
            estate_id=access.estate_id,
            events=[EstateEventItem.from_entity(e) for e in events],
            next_cursor=next_cursor,
        )

    def add_note(self, estate_id: str, user: SessionUser, body: Dict[str, Any]) -> None:
        """
        Raises:
            HTTPException 400: missing or over-long note
        """
        access = self.access.require_editor(estate_id, user.id)

        note = body.get("note")
        note = note.strip() if isinstance(note, str) else ""
        if not note:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing note")
        if len(note) > MAX_NOTE_LENGTH:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Note is too long")

        meta = body.get("meta")
        self.event_logger.log_for_estate(
            access.estate,
            EstateEventType.NOTE_CREATED,
            "Note added",
            note,
            {**(meta if isinstance(meta, dict) else {}), "actorId": access.user_id},
        )
