import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from episodic.db.models import Activity
from episodic.services.activity_service import ActivityRecorder, get_friends_feed, list_my_activity
from support import SqliteStoreMixin

T0 = datetime(2026, 2, 1, tzinfo=timezone.utc)


class TestActivityRecorder(SqliteStoreMixin, unittest.TestCase):
    def test_record_writes_row(self) -> None:
        user = self.add_user("alice")
        recorder = ActivityRecorder(self.session_factory)

        recorder.record(user.id, "mark_watched", target_id="1399", details={"episodeCount": 2})

        rows = self.session.query(Activity).all()
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].action, "mark_watched")
        self.assertEqual(rows[0].details, {"episodeCount": 2})

    def test_commit_failure_is_logged_not_raised(self) -> None:
        session = MagicMock()
        session.commit.side_effect = OperationalError("INSERT", {}, Exception("down"))
        recorder = ActivityRecorder(lambda: session)

        with self.assertLogs("episodic.services.activity_service", level="ERROR"):
            recorder.record(self.add_user("alice").id, "friend_request")

        session.rollback.assert_called_once()
        session.close.assert_called_once()

    def test_session_failure_is_logged_not_raised(self) -> None:
        def broken():
            raise OperationalError("connect", {}, Exception("refused"))

        with self.assertLogs("episodic.services.activity_service", level="ERROR"):
            ActivityRecorder(broken).record(self.add_user("alice").id, "review_like")

    def test_unserialisable_details_are_logged_not_raised(self) -> None:
        user = self.add_user("alice")
        recorder = ActivityRecorder(self.session_factory)

        with self.assertLogs("episodic.services.activity_service", level="ERROR"):
            recorder.record(user.id, "mark_watched", details={"watchedAt": object()})

        self.assertEqual(self.session.query(Activity).count(), 0)


class TestFeeds(SqliteStoreMixin, unittest.TestCase):
    def _activity(self, user, action: str, minutes: int) -> None:
        self.session.add(Activity(user_id=user.id, action=action, created_at=T0 + timedelta(minutes=minutes)))
        self.session.commit()

    def test_my_activity_newest_first(self) -> None:
        alice = self.add_user("alice")
        self._activity(alice, "review_create", 0)
        self._activity(alice, "mark_watched", 5)

        items = list_my_activity(self.store, alice.id)

        self.assertEqual([i["action"] for i in items], ["mark_watched", "review_create"])
        self.assertEqual(items[0]["username"], "alice")

    def test_friends_feed_only_includes_friends(self) -> None:
        bob = self.add_user("bob")
        carol = self.add_user("carol")
        alice = self.add_user("alice", friends=[bob.id])
        self._activity(bob, "review_like", 1)
        self._activity(carol, "review_like", 2)
        self._activity(alice, "review_like", 3)

        feed = get_friends_feed(self.store, alice.id)

        self.assertEqual([i["username"] for i in feed], ["bob"])

    def test_feed_limit(self) -> None:
        bob = self.add_user("bob")
        alice = self.add_user("alice", friends=[bob.id])
        for i in range(4):
            self._activity(bob, "mark_watched", i)
        self.assertEqual(len(get_friends_feed(self.store, alice.id, limit=2)), 2)
