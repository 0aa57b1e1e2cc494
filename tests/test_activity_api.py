import unittest
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import Mock, patch
from uuid import uuid4

from fastapi.testclient import TestClient

from episodic.db.session import get_db
from episodic.deps.auth import get_current_user
from episodic.deps.store import get_store
from episodic.main import app


class TestActivityApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        self.user = SimpleNamespace(id=uuid4())
        app.dependency_overrides[get_db] = lambda: iter([object()])
        app.dependency_overrides[get_store] = lambda: Mock()
        app.dependency_overrides[get_current_user] = lambda: self.user

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_feed_shape(self) -> None:
        with patch(
            "episodic.api.activity.get_friends_feed",
            return_value=[
                {
                    "id": uuid4(),
                    "user_id": uuid4(),
                    "username": "bob",
                    "profile_pic": None,
                    "action": "mark_watched",
                    "target_id": "1399",
                    "details": {"episodeCount": 2},
                    "created_at": datetime.now(timezone.utc),
                }
            ],
        ) as feed:
            response = self.client.get("/activity/feed?limit=10")

        self.assertEqual(response.status_code, 200)
        item = response.json()[0]
        self.assertEqual(item["action"], "mark_watched")
        self.assertEqual(item["targetId"], "1399")
        self.assertEqual(item["details"], {"episodeCount": 2})
        self.assertEqual(feed.call_args.kwargs["limit"], 10)

    def test_limit_bounds(self) -> None:
        response = self.client.get("/activity?limit=0")
        self.assertEqual(response.status_code, 422)
