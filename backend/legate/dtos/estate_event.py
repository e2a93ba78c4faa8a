"""Estate activity DTOs."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from legate.entities.estate_event import EstateEvent, EstateEventType

from .base import CamelModel


class EstateEventItem(CamelModel):
    id: str
    estate_id: str
    type: EstateEventType
    summary: str
    detail: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime

    @classmethod
    def from_entity(cls, event: EstateEvent) -> "EstateEventItem":
        return cls(
            id=str(event.id),
            estate_id=event.estate_id,
            type=event.type,
            summary=event.summary,
            detail=event.detail,
            meta=event.meta,
            created_at=event.created_at,
        )


class EstateEventListResponse(CamelModel):
    ok: bool = True
    estate_id: str
    events: List[EstateEventItem]
    next_cursor: Optional[str] = None


class OkResponse(CamelModel):
    ok: bool = True
