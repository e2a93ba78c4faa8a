"""
Collaborator Service - direct management of an estate's collaborator set.

Reads are viewer-level; every write is owner-only. The owner never appears
in ``collaborators``; its role is derived from ``owner_id``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from pymongo.database import Database

from legate.dtos.collaborator import (
    CollaboratorItem,
    CollaboratorListResponse,
    CollaboratorMutationResponse,
)
from legate.entities.base import is_object_id
from legate.entities.estate import CollaboratorRole, Estate, EstateCollaborator
from legate.entities.estate_event import EstateEventType
from legate.middleware.auth import SessionUser
from legate.repositories.estate import CONFLICT_DETAIL, EstateConflictError, EstateRepository
from legate.services.estate_access import EstateAccessService
from legate.services.estate_event_service import EstateEventLogger
from legate.utils.datetime import utc_now
from legate.utils.validation import as_trimmed_string, parse_collaborator_role

logger = logging.getLogger(__name__)

INVALID_USER_OR_ROLE = "Missing/invalid userId or role (EDITOR|VIEWER)"


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _collaborator_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collaborator not found")


class CollaboratorService:
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

    def _save(self, estate: Estate) -> None:
        try:
            self.estate_repo.save(estate)
        except EstateConflictError as exc:
            logger.warning("Collaborator write lost a race: %s", exc)
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=CONFLICT_DETAIL)

    @staticmethod
    def _mutation_response(estate: Estate) -> CollaboratorMutationResponse:
        return CollaboratorMutationResponse(
            collaborators=[CollaboratorItem(**c.model_dump()) for c in estate.collaborators]
        )

    def list_collaborators(self, estate_id: str, user: SessionUser) -> CollaboratorListResponse:
        access = self.access.require_viewer(estate_id, user.id)
        estate = access.estate
        return CollaboratorListResponse(
            estate_id=access.estate_id,
            owner_id=str(estate.owner_id),
            collaborators=[CollaboratorItem(**c.model_dump()) for c in estate.collaborators],
        )

    def upsert_collaborator(
        self, estate_id: str, user: SessionUser, body: Dict[str, Any]
    ) -> CollaboratorMutationResponse:
        """
        Add a collaborator, or change the role of an existing one.

        Same role is a no-op; the owner is rejected.
        """
        access = self.access.require_owner(estate_id, user.id)
        estate = access.estate

        target_id = as_trimmed_string(body.get("userId"))
        role = parse_collaborator_role(body.get("role"))
        if not is_object_id(target_id) or role is None:
            raise _bad_request(INVALID_USER_OR_ROLE)

        if target_id == str(estate.owner_id):
            raise _bad_request("Owner already has access")

        existing = estate.find_collaborator(target_id)
        if existing is not None:
            self._apply_role_change(estate, existing, role)
            return self._mutation_response(estate)

        estate.collaborators.append(
            EstateCollaborator(user_id=target_id, role=role, added_at=utc_now())
        )
        self._save(estate)
        self.event_logger.log_for_estate(
            estate,
            EstateEventType.COLLABORATOR_ADDED,
            "Collaborator added",
            f"Added collaborator {target_id} as {role.value}",
            {"userId": target_id, "role": role.value, "actorId": user.id},
        )
        logger.info("Added collaborator %s to estate %s as %s", target_id, estate.id, role.value)
        return self._mutation_response(estate)

    def change_role(
        self,
        estate_id: str,
        user: SessionUser,
        target_id: Any,
        role_value: Any,
        invalid_detail: str = INVALID_USER_OR_ROLE,
    ) -> CollaboratorMutationResponse:
        access = self.access.require_owner(estate_id, user.id)
        estate = access.estate

        target_id = as_trimmed_string(target_id)
        role = parse_collaborator_role(role_value)
        if not is_object_id(target_id) or role is None:
            raise _bad_request(invalid_detail)

        if target_id == str(estate.owner_id):
            raise _bad_request("Cannot change owner role")

        existing = estate.find_collaborator(target_id)
        if existing is None:
            raise _collaborator_not_found()

        self._apply_role_change(estate, existing, role)
        return self._mutation_response(estate)

    def _apply_role_change(
        self, estate: Estate, collaborator: EstateCollaborator, role: CollaboratorRole
    ) -> None:
        previous_role = collaborator.role
        if previous_role == role:
            return

        collaborator.role = role
        self._save(estate)
        self.event_logger.log_for_estate(
            estate,
            EstateEventType.COLLABORATOR_ROLE_CHANGED,
            "Collaborator role changed",
            f"Changed collaborator {collaborator.user_id} from {previous_role.value} to {role.value}",
            {"userId": collaborator.user_id, "previousRole": previous_role.value, "role": role.value},
        )

    def remove_collaborator(
        self,
        estate_id: str,
        user: SessionUser,
        target_id: Any,
        invalid_detail: str = "Missing/invalid userId",
    ) -> CollaboratorMutationResponse:
        access = self.access.require_owner(estate_id, user.id)
        estate = access.estate

        target_id = as_trimmed_string(target_id)
        if not is_object_id(target_id):
            raise _bad_request(invalid_detail)

        if target_id == user.id:
            raise _bad_request("Cannot remove yourself")
        if target_id == str(estate.owner_id):
            raise _bad_request("Cannot remove owner")

        removed = estate.find_collaborator(target_id)
        if removed is None:
            raise _collaborator_not_found()

        estate.collaborators = [c for c in estate.collaborators if c.user_id != target_id]
        self._save(estate)
        self.event_logger.log_for_estate(
            estate,
            EstateEventType.COLLABORATOR_REMOVED,
            "Collaborator removed",
            f"Removed collaborator {target_id}",
            {"userId": target_id, "previousRole": removed.role.value, "actorId": user.id},
        )
        logger.info("Removed collaborator %s from estate %s", target_id, estate.id)
        return self._mutation_response(estate)
