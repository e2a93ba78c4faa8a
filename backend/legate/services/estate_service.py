"""Estate Service - create and read estates with the caller's role attached."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from pymongo.database import Database

from legate.dtos.estate import (
    EstateAccessResponse,
    EstateListResponse,
    EstateResponse,
    EstateSummary,
)
from legate.entities.estate import Estate, EstateRole
from legate.entities.estate_event import EstateEventType
from legate.middleware.auth import SessionUser
from legate.repositories.estate import EstateRepository
from legate.services.estate_access import EstateAccessService, resolve_role
from legate.services.estate_event_service import EstateEventLogger
from legate.utils.validation import as_trimmed_string

logger = logging.getLogger(__name__)

MAX_LABEL_LENGTH = 200


def _summary(estate: Estate, role: EstateRole) -> EstateSummary:
    return EstateSummary(
        id=str(estate.id),
        label=estate.label,
        status=estate.status,
        owner_id=str(estate.owner_id),
        role=role,
        created_at=estate.created_at,
        updated_at=estate.updated_at,
    )


class EstateService:
    def __init__(
        self,
        db: Database,
        estate_repo: Optional[EstateRepository] = None,
        event_logger: Optional[EstateEventLogger] = None,
    ):
        self.db = db
        self.estate_repo = estate_repo or EstateRepository(db)
        self.access = EstateAccessService(db, self.estate_repo)
        self.event_logger = event_logger or EstateEventLogger(db)

    def create_estate(self, user: SessionUser, body: Dict[str, Any]) -> EstateResponse:
        label = as_trimmed_string(body.get("label"))
        if len(label) > MAX_LABEL_LENGTH:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Label is too long")

        estate = self.estate_repo.create(Estate(owner_id=user.id, label=label))
        self.event_logger.log_for_estate(
            estate,
            EstateEventType.ESTATE_CREATED,
            "Estate created",
            label or None,
            {"actorId": user.id},
        )
        logger.info("User %s created estate %s", user.id, estate.id)
        return EstateResponse(estate=_summary(estate, EstateRole.OWNER))

    def list_estates(self, user: SessionUser) -> EstateListResponse:
        summaries = []
        for estate in self.estate_repo.list_for_member(user.id):
            role = resolve_role(estate, user.id)
            if role is not None:
                summaries.append(_summary(estate, role))
        return EstateListResponse(estates=summaries)

    def get_estate(self, estate_id: str, user: SessionUser) -> EstateResponse:
        access = self.access.require_viewer(estate_id, user.id)
        return EstateResponse(estate=_summary(access.estate, access.role))

    def get_access(self, estate_id: str, user: SessionUser) -> EstateAccessResponse:
        access = self.access.require_viewer(estate_id, user.id)
        return EstateAccessResponse(
            estate_id=access.estate_id,
            role=access.role,
            is_owner=access.is_owner,
            can_edit=access.can_edit,
            can_view_sensitive=access.can_view_sensitive,
        )
