"""Database entity models - represents the actual structure stored in MongoDB"""

from .base import BaseEntity, PyObjectId, PyObjectIdStr, is_object_id, parse_object_id
from .estate import (
    CollaboratorRole,
    Estate,
    EstateCollaborator,
    EstateInvite,
    EstateRole,
    InviteStateError,
    InviteStatus,
)
from .estate_event import EstateEvent, EstateEventType, normalize_event_type
from .user import User

__all__ = [
    # Base
    "BaseEntity",
    "PyObjectId",
    "PyObjectIdStr",
    "is_object_id",
    "parse_object_id",
    # Estates
    "Estate",
    "EstateCollaborator",
    "EstateInvite",
    "EstateRole",
    "CollaboratorRole",
    "InviteStatus",
    "InviteStateError",
    # Events
    "EstateEvent",
    "EstateEventType",
    "normalize_event_type",
    # Users
    "User",
]
