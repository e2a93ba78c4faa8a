"""
Invitation Service - collaborator invite lifecycle for an estate.

Invites live embedded in the estate document. Every write loads the estate,
mutates it in memory and saves it back with a revision check, so two
requests racing on the same estate cannot silently overwrite each other.

Status transitions (everything but PENDING is terminal):
    PENDING -> ACCEPTED | REVOKED | EXPIRED
"""

from __future__ import annotations

import logging
import math
import secrets
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from pymongo.database import Database

from legate.config import settings
from legate.dtos.invitation import (
    InviteAcceptResponse,
    InviteCreateResponse,
    InviteItem,
    InviteListResponse,
    InviteRevokeResponse,
)
from legate.entities.base import parse_object_id
from legate.entities.estate import (
    Estate,
    EstateCollaborator,
    EstateInvite,
    InviteStateError,
    InviteStatus,
)
from legate.entities.estate_event import EstateEventType
from legate.middleware.auth import SessionUser
from legate.middleware.errors import RateLimited
from legate.repositories.estate import CONFLICT_DETAIL, EstateConflictError, EstateRepository
from legate.services.estate_access import EstateAccessService
from legate.services.estate_event_service import EstateEventLogger
from legate.utils.datetime import ensure_utc, utc_now
from legate.utils.validation import as_trimmed_string, normalize_email, parse_collaborator_role

logger = logging.getLogger(__name__)

INVITE_TOKEN_BYTES = 24
MAX_TOKEN_ATTEMPTS = 3


def generate_invite_token() -> str:
    """192 random bits, hex encoded."""
    return secrets.token_hex(INVITE_TOKEN_BYTES)


def build_invite_url(origin: str, estate_id: str, token: str) -> str:
    return f"{origin.rstrip('/')}/app/estates/{estate_id}/invites/{token}"


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvitationService:
    """Create, rotate, revoke, expire and accept estate invites."""

    def __init__(
        self,
        db: Database,
        estate_repo: Optional[EstateRepository] = None,
        event_logger: Optional[EstateEventLogger] = None,
        clock: Callable[[], datetime] = utc_now,
        token_factory: Callable[[], str] = generate_invite_token,
    ):
        self.db = db
        self.estate_repo = estate_repo or EstateRepository(db)
        self.access = EstateAccessService(db, self.estate_repo)
        self.event_logger = event_logger or EstateEventLogger(db)
        self.clock = clock
        self.token_factory = token_factory

    # -- persistence -----------------------------------------------------

    def _save(self, estate: Estate) -> Estate:
        try:
            return self.estate_repo.save(estate)
        except EstateConflictError as exc:
            logger.warning("Invite write lost a race: %s", exc)
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=CONFLICT_DETAIL)

    def _persist_expired(self, estate: Estate, expired: List[EstateInvite]) -> None:
        """Best-effort write of lazily expired invites."""
        if not expired:
            return
        try:
            self.estate_repo.save(estate)
            logger.info("Expired %d stale invite(s) on estate %s", len(expired), estate.id)
        except EstateConflictError as exc:
            logger.warning("Skipped persisting expired invites: %s", exc)

    def _new_token(self, estate: Estate) -> str:
        # one draw plus bounded retries on collision
        for _ in range(MAX_TOKEN_ATTEMPTS + 1):
            token = self.token_factory()
            if not estate.has_invite_token(token):
                return token
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not generate a unique invite token",
        )

    # -- owner operations ------------------------------------------------

    def list_invites(self, estate_id: str, user: SessionUser) -> InviteListResponse:
        """All invites on the estate, newest first, with stale ones expired."""
        access = self.access.require_owner(estate_id, user.id)
        estate = access.estate

        self._persist_expired(estate, estate.expire_stale_invites(self.clock()))

        invites = sorted(
            estate.invites,
            key=lambda i: ensure_utc(i.created_at),
            reverse=True,
        )
        return InviteListResponse(invites=[InviteItem.from_entity(i) for i in invites])

    def create_invite(
        self,
        estate_id: str,
        user: SessionUser,
        body: Dict[str, Any],
        origin: str,
    ) -> Tuple[InviteCreateResponse, bool]:
        """
        Create an invite, or rotate the active one for the same email.

        Returns:
            (response, created) where created is False for a rotation

        Raises:
            HTTPException 400: bad email/role or self-invite
            HTTPException 403/404: caller is not the owner / estate missing
            RateLimited: active invite cap reached
            HTTPException 409: estate changed concurrently
        """
        if parse_object_id(estate_id) is None:
            raise _bad_request("Invalid id")

        email = normalize_email(body.get("email"))
        role = parse_collaborator_role(body.get("role"))
        if not email or role is None:
            raise _bad_request("Missing/invalid email or role (EDITOR|VIEWER)")

        if email == user.email.lower():
            raise _bad_request("You cannot invite yourself.")

        access = self.access.require_owner(estate_id, user.id)
        estate = access.estate
        now = self.clock()

        existing = estate.find_active_invite_for_email(email, now)
        if existing is None:
            self._enforce_invite_cap(estate, now)

        token = self._new_token(estate)
        invite_url = build_invite_url(origin, str(estate.id), token)
        default_expiry = now + timedelta(days=settings.INVITE_TTL_DAYS)

        if existing is not None:
            previous_role = existing.role
            existing.token = token
            existing.role = role
            existing.created_by = user.id
            existing.created_at = now
            existing.expires_at = existing.expires_at or default_expiry
            invite = existing
        else:
            previous_role = None
            invite = EstateInvite(
                token=token,
                email=email,
                role=role,
                status=InviteStatus.PENDING,
                created_by=user.id,
                created_at=now,
                expires_at=default_expiry,
            )
            estate.invites.append(invite)

        self._save(estate)

        meta: Dict[str, Any] = {
            "email": email,
            "role": role.value,
            "token": token,
            "inviteUrl": invite_url,
            "expiresAt": invite.expires_at,
            "reused": previous_role is not None,
            "createdBy": user.id,
            "actorId": user.id,
        }
        if previous_role is not None:
            meta["previousRole"] = previous_role.value
        self.event_logger.log_for_estate(
            estate,
            EstateEventType.COLLABORATOR_INVITE_SENT,
            "Collaborator invite link created",
            f"Invite link created for {email} ({role.value})",
            meta,
        )

        logger.info(
            "%s invite for %s on estate %s",
            "Rotated" if previous_role is not None else "Created",
            email,
            estate.id,
        )
        response = InviteCreateResponse(
            invite_url=invite_url,
            token=token,
            email=email,
            role=role,
            status=invite.status,
            expires_at=invite.expires_at,
            previous_role=previous_role,
        )
        return response, previous_role is None

    def _enforce_invite_cap(self, estate: Estate, now: datetime) -> None:
        active = estate.active_invites(now)
        if len(active) < settings.MAX_ACTIVE_INVITES_PER_ESTATE:
            return

        expiries = [ensure_utc(i.expires_at) for i in active if i.expires_at is not None]
        retry_after = None
        if expiries:
            retry_after = max(1, math.ceil((min(expiries) - now).total_seconds()))

        logger.warning("Invite cap reached on estate %s", estate.id)
        raise RateLimited(
            "Invite limit reached. Revoke or wait for existing invites to expire.",
            retry_after_seconds=retry_after,
        )

    def revoke_invite(
        self, estate_id: str, user: SessionUser, body: Dict[str, Any]
    ) -> InviteRevokeResponse:
        """
        Revoke by token, or by email when no token is given. Idempotent.

        Raises:
            HTTPException 400: neither token nor email, or invite not revocable
        """
        if parse_object_id(estate_id) is None:
            raise _bad_request("Invalid id")

        token = as_trimmed_string(body.get("token"))
        email = normalize_email(body.get("email"))
        if not token and not email:
            raise _bad_request("Provide token or email")

        access = self.access.require_owner(estate_id, user.id)
        estate = access.estate
        now = self.clock()

        target = estate.find_invite(token) if token else estate.find_invite_for_email(email)
        if target is None:
            return InviteRevokeResponse(status="NOT_FOUND")

        if target.status == InviteStatus.REVOKED:
            return InviteRevokeResponse(
                token=target.token,
                email=target.email,
                status=target.status.value,
                revoked_at=target.revoked_at,
            )

        if target.is_expired(now):
            target.expire()
            self._save(estate)
            return InviteRevokeResponse(
                token=target.token,
                email=target.email,
                status=target.status.value,
                expires_at=target.expires_at,
            )

        try:
            target.revoke(now)
        except InviteStateError as exc:
            raise _bad_request(str(exc))

        self._save(estate)

        self.event_logger.log_for_estate(
            estate,
            EstateEventType.COLLABORATOR_INVITE_REVOKED,
            "Collaborator invite revoked",
            f"Invite revoked for {target.email} ({target.role.value})",
            {
                "email": target.email,
                "role": target.role.value,
                "token": target.token,
                "revokedAt": target.revoked_at,
                "revokedBy": user.id,
                "actorId": user.id,
            },
        )
        logger.info("Revoked invite for %s on estate %s", target.email, estate.id)
        return InviteRevokeResponse(
            token=target.token,
            email=target.email,
            status=target.status.value,
            revoked_at=target.revoked_at,
        )

    # -- invitee operations ----------------------------------------------

    def accept_invite(
        self, token: str, user: SessionUser, estate_id: Optional[str] = None
    ) -> InviteAcceptResponse:
        """
        Accept an invite as the signed-in user.

        When ``estate_id`` is given the token is only looked up on that
        estate; otherwise every estate is searched.

        Checks run in order: invite exists (404), is PENDING (400 "Invite is
        <status>"), has not expired (400, and EXPIRED is persisted), email
        matches the session (403).
        """
        scope = None
        if estate_id is not None:
            scope = parse_object_id(estate_id)
            if scope is None:
                raise _bad_request("Invalid id")

        token = (token or "").strip()
        estate = self.estate_repo.find_by_invite_token(token, scope) if token else None
        invite = estate.find_invite(token) if estate else None
        if estate is None or invite is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invite not found")

        if invite.status != InviteStatus.PENDING:
            raise _bad_request(str(InviteStateError(invite.status)))

        now = self.clock()
        if invite.is_expired(now):
            invite.expire()
            self._save(estate)
            raise _bad_request("Invite expired")

        user_email = user.email.lower()
        if not invite.email or invite.email.lower() != user_email:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invite email does not match your account",
            )

        if str(estate.owner_id) == str(user.id):
            raise _bad_request("Owner already has access")

        role_event: Optional[Tuple[EstateEventType, str, str, Dict[str, Any]]] = None
        existing = estate.find_collaborator(user.id)
        if existing is not None:
            if existing.role != invite.role:
                previous_role = existing.role
                existing.role = invite.role
                role_event = (
                    EstateEventType.COLLABORATOR_ROLE_CHANGED,
                    "Collaborator role updated",
                    f"Updated {user_email} from {previous_role.value} to {invite.role.value}",
                    {
                        "userId": user.id,
                        "previousRole": previous_role.value,
                        "role": invite.role.value,
                    },
                )
        else:
            estate.collaborators.append(
                EstateCollaborator(user_id=user.id, role=invite.role, added_at=now)
            )
            role_event = (
                EstateEventType.COLLABORATOR_ADDED,
                "Collaborator added",
                f"Accepted invite: {user_email} as {invite.role.value}",
                {"userId": user.id, "role": invite.role.value},
            )

        invite.accept(user.id, now)
        self._save(estate)

        if role_event is not None:
            self.event_logger.log_for_estate(estate, *role_event)
        self.event_logger.log_for_estate(
            estate,
            EstateEventType.COLLABORATOR_ADDED,
            "Invite accepted",
            f"{user_email} accepted an invite (link)",
            {"userId": user.id, "email": invite.email, "role": invite.role.value},
        )

        logger.info("User %s accepted invite on estate %s as %s", user.id, estate.id, invite.role.value)
        return InviteAcceptResponse(estate_id=str(estate.id), role=invite.role)
