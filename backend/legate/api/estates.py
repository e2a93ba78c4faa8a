"""
Estates API - create, list and read estates.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Path, status

from legate.api.dependencies import get_estate_service
from legate.dtos.estate import EstateAccessResponse, EstateListResponse, EstateResponse
from legate.middleware.auth import SessionUser, get_current_user
from legate.middleware.request_body import read_json_body
from legate.services.estate_service import EstateService

router = APIRouter(prefix="/estates", tags=["Estates"])


@router.post("", response_model=EstateResponse, status_code=status.HTTP_201_CREATED)
def create_estate(
    user: SessionUser = Depends(get_current_user),
    body: Dict[str, Any] = Depends(read_json_body),
    service: EstateService = Depends(get_estate_service),
):
    """Create an estate owned by the caller."""
    return service.create_estate(user, body)


@router.get("", response_model=EstateListResponse)
def list_estates(
    user: SessionUser = Depends(get_current_user),
    service: EstateService = Depends(get_estate_service),
):
    """Estates the caller owns or collaborates on."""
    return service.list_estates(user)


@router.get("/{estate_id}", response_model=EstateResponse)
def get_estate(
    estate_id: str = Path(..., description="Estate id"),
    user: SessionUser = Depends(get_current_user),
    service: EstateService = Depends(get_estate_service),
):
    return service.get_estate(estate_id, user)


@router.get("/{estate_id}/access", response_model=EstateAccessResponse)
def get_estate_access(
    estate_id: str = Path(..., description="Estate id"),
    user: SessionUser = Depends(get_current_user),
    service: EstateService = Depends(get_estate_service),
):
    """The caller's role and derived permissions on the estate."""
    return service.get_access(estate_id, user)
