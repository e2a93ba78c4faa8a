"""Collaborator DTOs."""

from datetime import datetime
from typing import List, Optional

from legate.entities.estate import CollaboratorRole

from .base import CamelModel


class CollaboratorItem(CamelModel):
    user_id: str
    role: CollaboratorRole
    added_at: Optional[datetime] = None


class CollaboratorListResponse(CamelModel):
    ok: bool = True
    estate_id: str
    owner_id: str
    collaborators: List[CollaboratorItem]


class CollaboratorMutationResponse(CamelModel):
    """Collaborator set after an add, role change or removal."""

    ok: bool = True
    collaborators: List[CollaboratorItem]
