import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from bson import ObjectId

from fakes import OWNER_ID, make_estate
from legate.entities.estate import EstateInvite, InviteStateError, InviteStatus
from legate.repositories.estate import EstateConflictError, EstateRepository
from legate.repositories.user import UserRepository

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestEstateRepository(unittest.TestCase):

    def setUp(self):
        self.db = MagicMock()
        self.collection = self.db.__getitem__.return_value
        self.repo = EstateRepository(self.db)

    def test_save_is_conditional_on_revision(self):
        estate = make_estate(revision=4)
        self.collection.update_one.return_value = MagicMock(matched_count=1)

        self.repo.save(estate)

        query, update = self.collection.update_one.call_args.args
        self.assertEqual(query, {"_id": estate.id, "revision": 4})
        self.assertEqual(update["$inc"], {"revision": 1})
        self.assertIn("invites", update["$set"])
        self.assertIn("collaborators", update["$set"])
        self.assertNotIn("owner_id", update["$set"])
        self.assertEqual(estate.revision, 5)

    def test_lost_race_raises_conflict(self):
        estate = make_estate(revision=2)
        self.collection.update_one.return_value = MagicMock(matched_count=0)

        with self.assertRaises(EstateConflictError):
            self.repo.save(estate)
        self.assertEqual(estate.revision, 2)

    def test_find_by_invite_token_scopes_to_estate(self):
        estate_id = ObjectId()
        self.collection.find_one.return_value = None

        self.repo.find_by_invite_token("abc", estate_id)

        query = self.collection.find_one.call_args.args[0]
        self.assertEqual(query, {"invites": {"$elemMatch": {"token": "abc"}}, "_id": estate_id})

    def test_loads_stored_document(self):
        oid = ObjectId()
        self.collection.find_one.return_value = {
            "_id": oid,
            "owner_id": OWNER_ID,
            "label": "Doe",
            "revision": 3,
            "collaborators": [{"user_id": "u", "role": "EDITOR", "added_at": NOW}],
            "invites": [],
        }

        estate = self.repo.find_by_id(oid)

        self.assertEqual(estate.id, oid)
        self.assertEqual(estate.revision, 3)
        self.assertEqual(estate.find_collaborator("u").role.value, "EDITOR")


class TestUserRepository(unittest.TestCase):

    def test_find_by_email_normalizes_case_and_whitespace(self):
        db = MagicMock()
        collection = db.__getitem__.return_value
        collection.find_one.return_value = None

        UserRepository(db).find_by_email("  Alice@X.com ")

        self.assertEqual(collection.find_one.call_args.args[0], {"email": "alice@x.com"})


class TestInviteStateMachine(unittest.TestCase):

    def _invite(self, **kwargs):
        data = {
            "token": "t",
            "email": "bob@x.com",
            "role": "VIEWER",
            "created_by": OWNER_ID,
            "created_at": NOW,
            "expires_at": NOW + timedelta(days=7),
        }
        data.update(kwargs)
        return EstateInvite(**data)

    def test_expiry_is_inclusive(self):
        invite = self._invite()
        self.assertFalse(invite.is_expired(NOW + timedelta(days=7) - timedelta(seconds=1)))
        self.assertTrue(invite.is_expired(NOW + timedelta(days=7)))
        self.assertEqual(invite.effective_status(NOW + timedelta(days=8)), InviteStatus.EXPIRED)

    def test_terminal_states_reject_transitions(self):
        for status in (InviteStatus.ACCEPTED, InviteStatus.REVOKED, InviteStatus.EXPIRED):
            invite = self._invite(status=status, expires_at=NOW - timedelta(days=1))
            self.assertFalse(invite.is_expired(NOW))
            for transition in (invite.expire, invite.revoke, lambda: invite.accept("u", NOW)):
                with self.assertRaises(InviteStateError) as ctx:
                    transition()
                self.assertEqual(str(ctx.exception), f"Invite is {status.value.lower()}")
            self.assertEqual(invite.status, status)

    def test_expire_stale_invites(self):
        estate = make_estate(
            invites=[
                self._invite(token="a", expires_at=NOW - timedelta(minutes=1)),
                self._invite(token="b"),
                self._invite(token="c", status=InviteStatus.REVOKED, expires_at=NOW - timedelta(days=1)),
            ]
        )

        expired = estate.expire_stale_invites(NOW)

        self.assertEqual([i.token for i in expired], ["a"])
        self.assertEqual(estate.find_invite("c").status, InviteStatus.REVOKED)

    def test_find_invite_for_email_prefers_pending(self):
        estate = make_estate(
            invites=[
                self._invite(token="old", status=InviteStatus.REVOKED, created_at=NOW - timedelta(days=3)),
                self._invite(token="pending", created_at=NOW - timedelta(days=2)),
                self._invite(token="newest", status=InviteStatus.ACCEPTED, created_at=NOW),
            ]
        )
        self.assertEqual(estate.find_invite_for_email("bob@x.com").token, "pending")

        estate.find_invite("pending").revoke(NOW)
        self.assertEqual(estate.find_invite_for_email("bob@x.com").token, "newest")
        self.assertIsNone(estate.find_invite_for_email("nobody@x.com"))


if __name__ == "__main__":
    unittest.main()
