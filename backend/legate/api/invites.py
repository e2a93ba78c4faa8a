"""Estate-agnostic invite acceptance (the link only carries the token)."""

from fastapi import APIRouter, Depends, Path

from legate.api.dependencies import get_invitation_service
from legate.dtos.invitation import InviteAcceptResponse
from legate.middleware.auth import SessionUser, get_current_user
from legate.services.invitation_service import InvitationService

router = APIRouter(prefix="/invites", tags=["Invites"])


@router.post("/{token}/accept", response_model=InviteAcceptResponse)
def accept_invite(
    token: str = Path(..., description="Invite token"),
    user: SessionUser = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service),
):
    return service.accept_invite(token, user)
