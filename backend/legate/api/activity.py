"""
Estate Activity API - the estate timeline.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from legate.api.dependencies import get_estate_event_service
from legate.dtos.estate_event import EstateEventListResponse, OkResponse
from legate.middleware.auth import SessionUser, get_current_user
from legate.middleware.request_body import read_json_body
from legate.services.estate_event_service import EstateEventService, parse_limit, parse_types

router = APIRouter(prefix="/estates/{estate_id}/activity", tags=["Activity"])


@router.get("", response_model=EstateEventListResponse)
def list_activity(
    estate_id: str = Path(..., description="Estate id"),
    limit: Optional[str] = Query(None, description="Page size, 1..100 (default 25)"),
    cursor: Optional[str] = Query(None, description="ISO created_at, exclusive"),
    types: List[str] = Query(default=[], description="Event types, CSV or repeated"),
    user: SessionUser = Depends(get_current_user),
    service: EstateEventService = Depends(get_estate_event_service),
):
    """Newest-first activity for the estate (Viewer or above)."""
    return service.list_events(
        estate_id,
        user,
        limit=parse_limit(limit),
        cursor=cursor,
        types=parse_types(types),
    )


@router.post("", response_model=OkResponse, status_code=status.HTTP_201_CREATED)
def add_activity_note(
    estate_id: str = Path(..., description="Estate id"),
    user: SessionUser = Depends(get_current_user),
    body: Dict[str, Any] = Depends(read_json_body),
    service: EstateEventService = Depends(get_estate_event_service),
):
    """Add a note to the timeline (Editor or above)."""
    service.add_note(estate_id, user, body)
    return OkResponse()
