"""
Estate Invites API - owner-managed collaborator invites for one estate.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Path, Request, Response, status

from legate.api.dependencies import get_invitation_service
from legate.dtos.invitation import (
    InviteAcceptResponse,
    InviteCreateResponse,
    InviteListResponse,
    InviteRevokeResponse,
)
from legate.middleware.auth import SessionUser, get_current_user
from legate.middleware.rate_limit import WriteRateLimiter, get_invite_rate_limiter
from legate.middleware.request_body import read_json_body
from legate.services.invitation_service import InvitationService
from legate.utils.request import public_origin

router = APIRouter(prefix="/estates/{estate_id}/invites", tags=["Estate Invites"])


def enforce_invite_rate_limit(
    request: Request,
    limiter: WriteRateLimiter = Depends(get_invite_rate_limiter),
) -> None:
    limiter.check(request)


@router.get("", response_model=InviteListResponse)
def list_invites(
    estate_id: str = Path(..., description="Estate id"),
    user: SessionUser = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
):
    """List all invites on the estate, newest first (Owner only)."""
    return service.list_invites(estate_id, user)


@router.post(
    "",
    response_model=InviteCreateResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def create_invite(
    request: Request,
    response: Response,
    estate_id: str = Path(..., description="Estate id"),
    user: SessionUser = Depends(get_current_user),
    _rate_limit: None = Depends(enforce_invite_rate_limit),
    body: Dict[str, Any] = Depends(read_json_body),
    service: InvitationService = Depends(get_invitation_service),
):
    """
    Create an invite link (Owner only).

    Re-inviting an email that already has an active invite rotates that
    invite's token and role and answers 200 with ``previousRole``.
    """
    result, created = service.create_invite(estate_id, user, body, public_origin(request))
    if not created:
        response.status_code = status.HTTP_200_OK
    return result


@router.delete("", response_model=InviteRevokeResponse, response_model_exclude_none=True)
def revoke_invite(
    estate_id: str = Path(..., description="Estate id"),
    user: SessionUser = Depends(get_current_user),
    _rate_limit: None = Depends(enforce_invite_rate_limit),
    body: Dict[str, Any] = Depends(read_json_body),
    service: InvitationService = Depends(get_invitation_service),
):
    """Revoke an invite by ``token`` or ``email`` (Owner only). Safe to repeat."""
    return service.revoke_invite(estate_id, user, body)


@router.post("/{token}/accept", response_model=InviteAcceptResponse)
def accept_invite(
    estate_id: str = Path(..., description="Estate id"),
    token: str = Path(..., description="Invite token"),
    user: SessionUser = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
):
    """Accept an invite on this estate as the signed-in user."""
    return service.accept_invite(token, user, estate_id=estate_id)
