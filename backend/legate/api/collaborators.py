"""
Collaborators API - list (viewer) and manage (owner) estate collaborators.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Path

from legate.api.dependencies import get_collaborator_service
from legate.dtos.collaborator import CollaboratorListResponse, CollaboratorMutationResponse
from legate.middleware.auth import SessionUser, get_current_user
from legate.middleware.request_body import read_json_body
from legate.services.collaborator_service import CollaboratorService

router = APIRouter(prefix="/estates/{estate_id}/collaborators", tags=["Collaborators"])


@router.get("", response_model=CollaboratorListResponse)
def list_collaborators(
    estate_id: str = Path(..., description="Estate id"),
    user: SessionUser = Depends(get_current_user),
    service: CollaboratorService = Depends(get_collaborator_service),
):
    return service.list_collaborators(estate_id, user)


@router.post("", response_model=CollaboratorMutationResponse)
def upsert_collaborator(
    estate_id: str = Path(..., description="Estate id"),
    user: SessionUser = Depends(get_current_user),
    body: Dict[str, Any] = Depends(read_json_body),
    service: CollaboratorService = Depends(get_collaborator_service),
):
    """Add a collaborator or change an existing one's role (Owner only)."""
    return service.upsert_collaborator(estate_id, user, body)


@router.patch("", response_model=CollaboratorMutationResponse)
def change_collaborator_role(
    estate_id: str = Path(..., description="Estate id"),
    user: SessionUser = Depends(get_current_user),
    body: Dict[str, Any] = Depends(read_json_body),
    service: CollaboratorService = Depends(get_collaborator_service),
):
    return service.change_role(estate_id, user, body.get("userId"), body.get("role"))


@router.patch("/{user_id}", response_model=CollaboratorMutationResponse)
def change_collaborator_role_by_path(
    estate_id: str = Path(..., description="Estate id"),
    user_id: str = Path(..., description="Collaborator user id"),
    user: SessionUser = Depends(get_current_user),
    body: Dict[str, Any] = Depends(read_json_body),
    service: CollaboratorService = Depends(get_collaborator_service),
):
    return service.change_role(
        estate_id,
        user,
        user_id,
        body.get("role"),
        invalid_detail="Missing/invalid role (EDITOR|VIEWER)",
    )


@router.delete("", response_model=CollaboratorMutationResponse)
def remove_collaborator(
    estate_id: str = Path(..., description="Estate id"),
    user: SessionUser = Depends(get_current_user),
    body: Dict[str, Any] = Depends(read_json_body),
    service: CollaboratorService = Depends(get_collaborator_service),
):
    return service.remove_collaborator(estate_id, user, body.get("userId"))


@router.delete("/{user_id}", response_model=CollaboratorMutationResponse)
def remove_collaborator_by_path(
    estate_id: str = Path(..., description="Estate id"),
    user_id: str = Path(..., description="Collaborator user id"),
    user: SessionUser = Depends(get_current_user),
    service: CollaboratorService = Depends(get_collaborator_service),
):
    return service.remove_collaborator(estate_id, user, user_id, invalid_detail="Invalid id")
