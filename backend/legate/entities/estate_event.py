"""
EstateEvent Entity - append-only audit/timeline records for an estate.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import Field, field_validator

from .base import BaseEntity

SUMMARY_MAX_LENGTH = 240
DETAIL_MAX_LENGTH = 4000


class EstateEventType(str, Enum):
    """Canonical event types."""

    ESTATE_CREATED = "ESTATE_CREATED"
    ESTATE_UPDATED = "ESTATE_UPDATED"
    ESTATE_DELETED = "ESTATE_DELETED"

    INVOICE_CREATED = "INVOICE_CREATED"
    INVOICE_STATUS_CHANGED = "INVOICE_STATUS_CHANGED"

    DOCUMENT_CREATED = "DOCUMENT_CREATED"
    DOCUMENT_UPDATED = "DOCUMENT_UPDATED"
    DOCUMENT_DELETED = "DOCUMENT_DELETED"

    NOTE_CREATED = "NOTE_CREATED"
    NOTE_UPDATED = "NOTE_UPDATED"
    NOTE_PINNED = "NOTE_PINNED"
    NOTE_UNPINNED = "NOTE_UNPINNED"
    NOTE_DELETED = "NOTE_DELETED"

    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_COMPLETED = "TASK_COMPLETED"
    TASK_REOPENED = "TASK_REOPENED"
    TASK_DELETED = "TASK_DELETED"

    CONTACT_LINKED = "CONTACT_LINKED"
    CONTACT_UNLINKED = "CONTACT_UNLINKED"

    COLLABORATOR_ADDED = "COLLABORATOR_ADDED"
    COLLABORATOR_ROLE_CHANGED = "COLLABORATOR_ROLE_CHANGED"
    COLLABORATOR_REMOVED = "COLLABORATOR_REMOVED"
    COLLABORATOR_INVITE_SENT = "COLLABORATOR_INVITE_SENT"
    COLLABORATOR_INVITE_REVOKED = "COLLABORATOR_INVITE_REVOKED"
    COLLABORATOR_INVITE_ACCEPTED = "COLLABORATOR_INVITE_ACCEPTED"


# Legacy names still sent by older callers
EVENT_TYPE_ALIASES: Dict[str, EstateEventType] = {
    "DOCUMENT_ADDED": EstateEventType.DOCUMENT_CREATED,
    "DOCUMENT_REMOVED": EstateEventType.DOCUMENT_DELETED,
    "DOCUMENT_UPSERTED": EstateEventType.DOCUMENT_UPDATED,
    "NOTE_ADDED": EstateEventType.NOTE_CREATED,
    "NOTE_EDITED": EstateEventType.NOTE_UPDATED,
    "NOTE_ARCHIVED": EstateEventType.NOTE_DELETED,
    "TASK_DONE": EstateEventType.TASK_COMPLETED,
    "TASK_UNDONE": EstateEventType.TASK_REOPENED,
    "INVOICE_SENT": EstateEventType.INVOICE_STATUS_CHANGED,
    "INVOICE_PAID": EstateEventType.INVOICE_STATUS_CHANGED,
    "INVOICE_VOID": EstateEventType.INVOICE_STATUS_CHANGED,
    "CONTACT_ADDED": EstateEventType.CONTACT_LINKED,
    "CONTACT_REMOVED": EstateEventType.CONTACT_UNLINKED,
}


def normalize_event_type(value: Any) -> EstateEventType:
    """Map canonical names and aliases to an EstateEventType; unknown -> ESTATE_UPDATED."""
    if isinstance(value, EstateEventType):
        return value

    raw = str(value or "").strip().upper()
    if raw in EVENT_TYPE_ALIASES:
        return EVENT_TYPE_ALIASES[raw]
    try:
        return EstateEventType(raw)
    except ValueError:
        return EstateEventType.ESTATE_UPDATED


class EstateEvent(BaseEntity):
    """Timeline entry stored in the estate_events collection."""

    estate_id: str = Field(..., description="Estate the event belongs to")
    owner_id: str = Field(..., description="Estate owner at the time of the event")
    type: EstateEventType = Field(..., description="Canonical event type")
    summary: str = Field(..., description="Short one-line description")
    detail: Optional[str] = Field(default=None, description="Free-form detail")
    meta: Optional[Dict[str, Any]] = Field(default=None, description="Structured context")

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> EstateEventType:
        return normalize_event_type(value)

    @field_validator("summary", mode="before")
    @classmethod
    def _trim_summary(cls, value: Any) -> str:
        return str(value or "").strip()[:SUMMARY_MAX_LENGTH]

    @field_validator("detail", mode="before")
    @classmethod
    def _trim_detail(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text[:DETAIL_MAX_LENGTH] or None
