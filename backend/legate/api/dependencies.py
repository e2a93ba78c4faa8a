"""Service providers for the routers; tests swap them via dependency_overrides."""

from fastapi import Depends
from pymongo.database import Database

from legate.database.mongo import get_db
from legate.services.collaborator_service import CollaboratorService
from legate.services.estate_event_service import EstateEventService
from legate.services.estate_service import EstateService
from legate.services.invitation_service import InvitationService


def get_invitation_service(db: Database = Depends(get_db)) -> InvitationService:
    return InvitationService(db)


def get_collaborator_service(db: Database = Depends(get_db)) -> CollaboratorService:
    return CollaboratorService(db)


def get_estate_event_service(db: Database = Depends(get_db)) -> EstateEventService:
    return EstateEventService(db)


def get_estate_service(db: Database = Depends(get_db)) -> EstateService:
    return EstateService(db)
