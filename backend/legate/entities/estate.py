"""
Estate Entity - the tenant document.

Collaborators and invites are embedded arrays; the whole estate is read,
mutated in memory and written back with a revision check.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from legate.utils.datetime import ensure_utc, utc_now

from .base import BaseEntity


class EstateRole(str, Enum):
    """Effective role of a user on an estate. OWNER is never stored."""

    OWNER = "OWNER"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


class CollaboratorRole(str, Enum):
    """Roles that can be granted to a collaborator or offered by an invite."""

    EDITOR = "EDITOR"
    VIEWER = "VIEWER"


class InviteStatus(str, Enum):
    """Invite status. Everything except PENDING is terminal."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"


class InviteStateError(ValueError):
    """Raised when a transition is attempted from a terminal invite status."""

    def __init__(self, status: InviteStatus):
        self.status = status
        super().__init__(f"Invite is {status.value.lower()}")


class EstateCollaborator(BaseModel):
    """A non-owner user granted access to an estate."""

    user_id: str
    role: CollaboratorRole
    added_at: datetime = Field(default_factory=utc_now)


class EstateInvite(BaseModel):
    """Token-addressed, time-bounded offer of a role to an email address."""

    token: str
    email: str
    role: CollaboratorRole
    status: InviteStatus = InviteStatus.PENDING
    created_by: str
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: Optional[datetime] = None

    accepted_by: Optional[str] = None
    accepted_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """PENDING with an expiry at or before now. Terminal invites never count."""
        if self.status != InviteStatus.PENDING or self.expires_at is None:
            return False
        return ensure_utc(self.expires_at) <= (now or utc_now())

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Pending and not yet past its expiry."""
        return self.status == InviteStatus.PENDING and not self.is_expired(now)

    def effective_status(self, now: Optional[datetime] = None) -> InviteStatus:
        return InviteStatus.EXPIRED if self.is_expired(now) else self.status

    def _require_pending(self) -> None:
        if self.status != InviteStatus.PENDING:
            raise InviteStateError(self.status)

    def expire(self) -> "EstateInvite":
        self._require_pending()
        self.status = InviteStatus.EXPIRED
        return self

    def accept(self, user_id: str, now: Optional[datetime] = None) -> "EstateInvite":
        self._require_pending()
        self.status = InviteStatus.ACCEPTED
        self.accepted_by = user_id
        self.accepted_at = now or utc_now()
        return self

    def revoke(self, now: Optional[datetime] = None) -> "EstateInvite":
        self._require_pending()
        self.status = InviteStatus.REVOKED
        self.revoked_at = now or utc_now()
        return self


class Estate(BaseEntity):
    """A probate case and its access-control state."""

    owner_id: str
    label: str = ""
    status: str = "OPEN"

    collaborators: List[EstateCollaborator] = Field(default_factory=list)
    invites: List[EstateInvite] = Field(default_factory=list)

    # Incremented on every write; saves are conditional on the loaded value
    revision: int = 0

    def find_collaborator(self, user_id: str) -> Optional[EstateCollaborator]:
        for collaborator in self.collaborators:
            if collaborator.user_id == user_id:
                return collaborator
        return None

    def find_invite(self, token: str) -> Optional[EstateInvite]:
        for invite in self.invites:
            if invite.token == token:
                return invite
        return None

    def find_invite_for_email(self, email: str) -> Optional[EstateInvite]:
        """Pending invite for the email if any, else the most recent one."""
        matches = [i for i in self.invites if i.email == email]
        if not matches:
            return None
        for invite in matches:
            if invite.status == InviteStatus.PENDING:
                return invite
        return max(matches, key=lambda i: ensure_utc(i.created_at))

    def find_active_invite_for_email(
        self, email: str, now: Optional[datetime] = None
    ) -> Optional[EstateInvite]:
        for invite in self.invites:
            if invite.email == email and invite.is_active(now):
                return invite
        return None

    def active_invites(self, now: Optional[datetime] = None) -> List[EstateInvite]:
        return [i for i in self.invites if i.is_active(now)]

    def has_invite_token(self, token: str) -> bool:
        return self.find_invite(token) is not None

    def expire_stale_invites(self, now: Optional[datetime] = None) -> List[EstateInvite]:
        """Flip every pending-but-past-expiry invite to EXPIRED. Returns those flipped."""
        expired = [i for i in self.invites if i.is_expired(now)]
        for invite in expired:
            invite.expire()
        return expired
