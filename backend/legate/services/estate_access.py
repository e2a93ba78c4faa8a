"""
Estate access control.

``resolve_role`` is the single source of truth for a user's effective role
on an estate. The ``require_*`` gates classify a (possibly missing) estate
and user into allow/deny without writing anything:

- viewer: any role; a missing estate or a non-member is a 404 so estate
  existence is not leaked
- editor: OWNER or EDITOR; VIEWER or no role is a 403
- owner: OWNER only; anything else is a 403
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import quote

from fastapi import HTTPException, status
from pymongo.database import Database

from legate.core.tracing import TracingContext
from legate.entities.base import parse_object_id
from legate.entities.estate import Estate, EstateRole
from legate.middleware.errors import AccessDenied
from legate.repositories.estate import EstateRepository

logger = logging.getLogger(__name__)

ROLE_RANK: Dict[EstateRole, int] = {
    EstateRole.OWNER: 3,
    EstateRole.EDITOR: 2,
    EstateRole.VIEWER: 1,
}


def resolve_role(estate: Estate, user_id: str) -> Optional[EstateRole]:
    """OWNER for the owner, the stored collaborator role, or None."""
    if not user_id:
        return None
    if str(estate.owner_id) == str(user_id):
        return EstateRole.OWNER

    collaborator = estate.find_collaborator(str(user_id))
    if collaborator is None:
        return None
    return EstateRole(collaborator.role.value)


def has_role(actual: Optional[EstateRole], at_least: EstateRole) -> bool:
    if actual is None:
        return False
    return ROLE_RANK[actual] >= ROLE_RANK[at_least]


def build_request_access_href(estate_id: str, from_path: Optional[str] = None) -> str:
    href = f"/app/estates/{quote(str(estate_id), safe='')}/request-access"
    if from_path:
        href += f"?from={quote(from_path, safe='')}"
    return href


@dataclass(frozen=True)
class EstateAccess:
    """Outcome of a passed gate: the estate and the caller's role on it."""

    estate: Estate
    user_id: str
    role: EstateRole

    @property
    def estate_id(self) -> str:
        return str(self.estate.id)

    @property
    def is_owner(self) -> bool:
        return self.role == EstateRole.OWNER

    @property
    def can_edit(self) -> bool:
        return has_role(self.role, EstateRole.EDITOR)

    @property
    def can_view_sensitive(self) -> bool:
        return self.is_owner


def _not_found() -> AccessDenied:
    return AccessDenied(status.HTTP_404_NOT_FOUND, "Estate not found")


def _forbidden(estate: Estate, from_path: Optional[str]) -> AccessDenied:
    return AccessDenied(
        status.HTTP_403_FORBIDDEN,
        "Forbidden",
        redirect_to=build_request_access_href(str(estate.id), from_path),
    )


def require_viewer(
    estate: Optional[Estate], user_id: str, from_path: Optional[str] = None
) -> EstateAccess:
    if estate is None:
        raise _not_found()
    role = resolve_role(estate, user_id)
    if role is None:
        raise _not_found()
    return EstateAccess(estate=estate, user_id=str(user_id), role=role)


def require_editor(
    estate: Optional[Estate], user_id: str, from_path: Optional[str] = None
) -> EstateAccess:
    if estate is None:
        raise _not_found()
    role = resolve_role(estate, user_id)
    if not has_role(role, EstateRole.EDITOR):
        raise _forbidden(estate, from_path)
    return EstateAccess(estate=estate, user_id=str(user_id), role=role)


def require_owner(
    estate: Optional[Estate], user_id: str, from_path: Optional[str] = None
) -> EstateAccess:
    if estate is None:
        raise _not_found()
    role = resolve_role(estate, user_id)
    if role != EstateRole.OWNER:
        raise _forbidden(estate, from_path)
    return EstateAccess(estate=estate, user_id=str(user_id), role=role)


class EstateAccessService:
    """Loads estates by path id and applies the access gates."""

    def __init__(self, db: Database, estate_repo: Optional[EstateRepository] = None):
        self.db = db
        self.estate_repo = estate_repo or EstateRepository(db)

    def load_estate(self, estate_id: str) -> Optional[Estate]:
        """
        Raises:
            HTTPException 400: estate_id is not a valid id
        """
        oid = parse_object_id(estate_id)
        if oid is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid id")

        TracingContext.set(estate_id=str(oid))
        return self.estate_repo.find_by_id(oid)

    def require_viewer(
        self, estate_id: str, user_id: str, from_path: Optional[str] = None
    ) -> EstateAccess:
        return require_viewer(self.load_estate(estate_id), user_id, from_path)

    def require_editor(
        self, estate_id: str, user_id: str, from_path: Optional[str] = None
    ) -> EstateAccess:
        return require_editor(self.load_estate(estate_id), user_id, from_path)

    def require_owner(
        self, estate_id: str, user_id: str, from_path: Optional[str] = None
    ) -> EstateAccess:
        access = require_owner(self.load_estate(estate_id), user_id, from_path)
        logger.debug("Owner access granted on estate %s", access.estate_id)
        return access
