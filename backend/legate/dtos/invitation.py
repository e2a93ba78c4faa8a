"""
Invitation DTOs - Request/Response models for the estate invite API.
"""

from datetime import datetime
from typing import List, Optional

from legate.entities.estate import CollaboratorRole, EstateInvite, InviteStatus

from .base import CamelModel


class InviteItem(CamelModel):
    """One invite as shown to the estate owner."""

    token: str
    email: str
    role: CollaboratorRole
    status: InviteStatus
    created_by: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    accepted_by: Optional[str] = None
    accepted_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, invite: EstateInvite) -> "InviteItem":
        return cls(**invite.model_dump())


class InviteListResponse(CamelModel):
    ok: bool = True
    invites: List[InviteItem]


class InviteCreateResponse(CamelModel):
    """Returned for both a fresh invite and a rotation (previous_role set)."""

    ok: bool = True
    invite_url: str
    token: str
    email: str
    role: CollaboratorRole
    status: InviteStatus
    expires_at: Optional[datetime] = None
    previous_role: Optional[CollaboratorRole] = None


class InviteRevokeResponse(CamelModel):
    """Revocation outcome; ``status`` is NOT_FOUND when nothing matched."""

    ok: bool = True
    status: str
    token: Optional[str] = None
    email: Optional[str] = None
    revoked_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class InviteAcceptResponse(CamelModel):
    ok: bool = True
    estate_id: str
    role: CollaboratorRole
