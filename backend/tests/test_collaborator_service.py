import unittest
from unittest.mock import MagicMock

from fastapi import HTTPException

from fakes import (
    BOB_ID,
    EDITOR_ID,
    OWNER_ID,
    VIEWER_ID,
    InMemoryEstateRepository,
    RecordingEventLogger,
    make_estate,
)
from legate.entities.estate import CollaboratorRole, EstateCollaborator
from legate.middleware.auth import SessionUser
from legate.middleware.errors import AccessDenied
from legate.repositories.estate import CONFLICT_DETAIL
from legate.services.collaborator_service import CollaboratorService

OWNER = SessionUser(id=OWNER_ID, email="owner@example.com")
EDITOR = SessionUser(id=EDITOR_ID, email="editor@example.com")
VIEWER = SessionUser(id=VIEWER_ID, email="viewer@example.com")


class TestCollaboratorService(unittest.TestCase):

    def setUp(self):
        self.estate = make_estate(
            collaborators=[
                EstateCollaborator(user_id=EDITOR_ID, role=CollaboratorRole.EDITOR),
                EstateCollaborator(user_id=VIEWER_ID, role=CollaboratorRole.VIEWER),
            ]
        )
        self.repo = InMemoryEstateRepository(self.estate)
        self.events = RecordingEventLogger()
        self.service = CollaboratorService(
            MagicMock(), estate_repo=self.repo, event_logger=self.events
        )
        self.estate_id = str(self.estate.id)

    def stored_roles(self):
        return {c.user_id: c.role for c in self.repo.stored(self.estate_id).collaborators}

    def test_any_member_can_list(self):
        response = self.service.list_collaborators(self.estate_id, VIEWER)
        self.assertEqual(response.owner_id, OWNER_ID)
        self.assertEqual(len(response.collaborators), 2)

    def test_only_owner_can_write(self):
        with self.assertRaises(AccessDenied) as ctx:
            self.service.upsert_collaborator(
                self.estate_id, EDITOR, {"userId": BOB_ID, "role": "VIEWER"}
            )
        self.assertEqual(ctx.exception.status_code, 403)

    def test_upsert_adds_then_changes_then_noops(self):
        self.service.upsert_collaborator(self.estate_id, OWNER, {"userId": BOB_ID, "role": "VIEWER"})
        self.assertEqual(self.stored_roles()[BOB_ID], CollaboratorRole.VIEWER)

        self.service.upsert_collaborator(self.estate_id, OWNER, {"userId": BOB_ID, "role": "EDITOR"})
        self.assertEqual(self.stored_roles()[BOB_ID], CollaboratorRole.EDITOR)

        saves = self.repo.save_calls
        response = self.service.upsert_collaborator(
            self.estate_id, OWNER, {"userId": BOB_ID, "role": "EDITOR"}
        )
        self.assertEqual(self.repo.save_calls, saves)
        self.assertEqual(len(response.collaborators), 3)
        self.assertEqual(
            self.events.types(), ["COLLABORATOR_ADDED", "COLLABORATOR_ROLE_CHANGED"]
        )

    def test_upsert_rejects_owner_and_bad_input(self):
        with self.assertRaises(HTTPException) as ctx:
            self.service.upsert_collaborator(self.estate_id, OWNER, {"userId": OWNER_ID, "role": "EDITOR"})
        self.assertEqual(ctx.exception.detail, "Owner already has access")

        for body in ({"userId": "nope", "role": "EDITOR"}, {"userId": BOB_ID, "role": "OWNER"}):
            with self.assertRaises(HTTPException) as ctx:
                self.service.upsert_collaborator(self.estate_id, OWNER, body)
            self.assertEqual(ctx.exception.detail, "Missing/invalid userId or role (EDITOR|VIEWER)")

    def test_change_role(self):
        self.service.change_role(self.estate_id, OWNER, VIEWER_ID, "EDITOR")
        self.assertEqual(self.stored_roles()[VIEWER_ID], CollaboratorRole.EDITOR)
        meta = self.events.events[-1]["meta"]
        self.assertEqual(meta, {"userId": VIEWER_ID, "previousRole": "VIEWER", "role": "EDITOR"})

    def test_change_role_errors(self):
        with self.assertRaises(HTTPException) as ctx:
            self.service.change_role(self.estate_id, OWNER, OWNER_ID, "VIEWER")
        self.assertEqual(ctx.exception.detail, "Cannot change owner role")

        with self.assertRaises(HTTPException) as ctx:
            self.service.change_role(self.estate_id, OWNER, BOB_ID, "VIEWER")
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.detail, "Collaborator not found")

    def test_remove(self):
        self.service.remove_collaborator(self.estate_id, OWNER, EDITOR_ID)

        self.assertNotIn(EDITOR_ID, self.stored_roles())
        event = self.events.events[-1]
        self.assertEqual(event["type"], "COLLABORATOR_REMOVED")
        self.assertEqual(event["meta"]["previousRole"], "EDITOR")

    def test_remove_errors(self):
        with self.assertRaises(HTTPException) as ctx:
            self.service.remove_collaborator(self.estate_id, OWNER, OWNER_ID)
        self.assertEqual(ctx.exception.detail, "Cannot remove yourself")

        with self.assertRaises(HTTPException) as ctx:
            self.service.remove_collaborator(self.estate_id, OWNER, BOB_ID)
        self.assertEqual(ctx.exception.status_code, 404)

        with self.assertRaises(HTTPException) as ctx:
            self.service.remove_collaborator(self.estate_id, OWNER, "bad", invalid_detail="Invalid id")
        self.assertEqual(ctx.exception.detail, "Invalid id")

    def test_lost_race_is_409_and_logs_nothing(self):
        original_find = self.repo.find_by_id

        def load_then_race(estate_id):
            loaded = original_find(estate_id)
            self.repo.save(original_find(estate_id))
            return loaded

        self.repo.find_by_id = load_then_race
        with self.assertRaises(HTTPException) as ctx:
            self.service.remove_collaborator(self.estate_id, OWNER, EDITOR_ID)

        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.detail, CONFLICT_DETAIL)
        self.assertIn(EDITOR_ID, self.stored_roles())
        self.assertEqual(self.events.events, [])

    def test_owner_never_stored_as_collaborator(self):
        for call in (
            lambda: self.service.upsert_collaborator(self.estate_id, OWNER, {"userId": OWNER_ID, "role": "VIEWER"}),
            lambda: self.service.change_role(self.estate_id, OWNER, OWNER_ID, "EDITOR"),
        ):
            with self.assertRaises(HTTPException):
                call()
        self.assertNotIn(OWNER_ID, self.stored_roles())


if __name__ == "__main__":
    unittest.main()
