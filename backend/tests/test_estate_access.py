import unittest
from unittest.mock import MagicMock

from fastapi import HTTPException

from fakes import (
    EDITOR_ID,
    OWNER_ID,
    STRANGER_ID,
    VIEWER_ID,
    InMemoryEstateRepository,
    make_estate,
)
from legate.entities.estate import CollaboratorRole, EstateCollaborator, EstateRole
from legate.middleware.errors import AccessDenied
from legate.services.estate_access import (
    EstateAccessService,
    build_request_access_href,
    has_role,
    require_editor,
    require_owner,
    require_viewer,
    resolve_role,
)


def _estate_with_members():
    return make_estate(
        collaborators=[
            EstateCollaborator(user_id=EDITOR_ID, role=CollaboratorRole.EDITOR),
            EstateCollaborator(user_id=VIEWER_ID, role=CollaboratorRole.VIEWER),
        ]
    )


class TestResolveRole(unittest.TestCase):

    def test_owner_collaborators_and_strangers(self):
        estate = _estate_with_members()

        self.assertEqual(resolve_role(estate, OWNER_ID), EstateRole.OWNER)
        self.assertEqual(resolve_role(estate, EDITOR_ID), EstateRole.EDITOR)
        self.assertEqual(resolve_role(estate, VIEWER_ID), EstateRole.VIEWER)
        self.assertIsNone(resolve_role(estate, STRANGER_ID))
        self.assertIsNone(resolve_role(estate, ""))

    def test_owner_wins_over_a_stray_collaborator_entry(self):
        estate = make_estate(
            collaborators=[EstateCollaborator(user_id=OWNER_ID, role=CollaboratorRole.VIEWER)]
        )
        self.assertEqual(resolve_role(estate, OWNER_ID), EstateRole.OWNER)

    def test_does_not_mutate_estate(self):
        estate = _estate_with_members()
        before = estate.model_dump()

        resolve_role(estate, EDITOR_ID)
        resolve_role(estate, STRANGER_ID)

        self.assertEqual(estate.model_dump(), before)

    def test_has_role_ranking(self):
        self.assertTrue(has_role(EstateRole.OWNER, EstateRole.EDITOR))
        self.assertTrue(has_role(EstateRole.EDITOR, EstateRole.EDITOR))
        self.assertFalse(has_role(EstateRole.VIEWER, EstateRole.EDITOR))
        self.assertFalse(has_role(None, EstateRole.VIEWER))


class TestAccessGates(unittest.TestCase):

    def setUp(self):
        self.estate = _estate_with_members()

    def test_viewer_gate_admits_every_member(self):
        for user_id in (OWNER_ID, EDITOR_ID, VIEWER_ID):
            access = require_viewer(self.estate, user_id)
            self.assertEqual(access.user_id, user_id)

    def test_viewer_gate_hides_estate_from_non_members(self):
        with self.assertRaises(AccessDenied) as ctx:
            require_viewer(self.estate, STRANGER_ID)
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(ctx.exception.detail, "Estate not found")

    def test_missing_estate_is_404_for_every_gate(self):
        for gate in (require_viewer, require_editor, require_owner):
            with self.assertRaises(AccessDenied) as ctx:
                gate(None, OWNER_ID)
            self.assertEqual(ctx.exception.status_code, 404)

    def test_editor_gate(self):
        self.assertTrue(require_editor(self.estate, OWNER_ID).can_edit)
        self.assertTrue(require_editor(self.estate, EDITOR_ID).can_edit)

        for user_id in (VIEWER_ID, STRANGER_ID):
            with self.assertRaises(AccessDenied) as ctx:
                require_editor(self.estate, user_id, from_path="/app/estates/x/tasks")
            self.assertEqual(ctx.exception.status_code, 403)
            self.assertEqual(ctx.exception.detail, "Forbidden")
            self.assertIn("/request-access?from=", ctx.exception.redirect_to)

    def test_owner_gate(self):
        access = require_owner(self.estate, OWNER_ID)
        self.assertTrue(access.is_owner)
        self.assertTrue(access.can_view_sensitive)

        for user_id in (EDITOR_ID, VIEWER_ID, STRANGER_ID):
            with self.assertRaises(AccessDenied) as ctx:
                require_owner(self.estate, user_id)
            self.assertEqual(ctx.exception.status_code, 403)

    def test_access_flags_for_viewer(self):
        access = require_viewer(self.estate, VIEWER_ID)
        self.assertFalse(access.is_owner)
        self.assertFalse(access.can_edit)
        self.assertFalse(access.can_view_sensitive)

    def test_request_access_href(self):
        self.assertEqual(build_request_access_href("abc"), "/app/estates/abc/request-access")
        self.assertEqual(
            build_request_access_href("abc", "/app/estates/abc/notes"),
            "/app/estates/abc/request-access?from=%2Fapp%2Festates%2Fabc%2Fnotes",
        )


class TestEstateAccessService(unittest.TestCase):

    def test_invalid_id_is_400(self):
        service = EstateAccessService(MagicMock(), InMemoryEstateRepository())
        with self.assertRaises(HTTPException) as ctx:
            service.require_viewer("not-an-id", OWNER_ID)
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.detail, "Invalid id")

    def test_loads_and_gates(self):
        estate = _estate_with_members()
        service = EstateAccessService(MagicMock(), InMemoryEstateRepository(estate))

        access = service.require_editor(str(estate.id), EDITOR_ID)
        self.assertEqual(access.role, EstateRole.EDITOR)
        self.assertEqual(access.estate_id, str(estate.id))

        with self.assertRaises(AccessDenied):
            service.require_viewer("64b0000000000000000000ff", OWNER_ID)


if __name__ == "__main__":
    unittest.main()
