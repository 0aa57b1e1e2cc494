import unittest
import uuid
from datetime import datetime, timedelta, timezone

from episodic.db.documents import DocumentStore, decode_ids
from episodic.db.models import Review
from episodic.services.friend_service import UserNotFoundError
from episodic.services.review_service import (
    ReviewNotFoundError,
    create_review,
    get_reviews_by_user,
    get_reviews_for_show,
    vote_review,
)
from episodic.services.vote_rules import SelfVoteForbiddenError, VoteAction, apply_vote
from support import SqliteStoreMixin


class TestVoteReview(SqliteStoreMixin, unittest.TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.author = self.add_user("author")
        self.voter = self.add_user("voter")
        self.review = self.add_review(self.author)

    def _stored(self) -> tuple[list, list]:
        row = self.reload(Review, self.review.id)
        return row.likes, row.dislikes

    def test_like_then_dislike_moves_vote(self) -> None:
        v = str(self.voter.id)

        result = vote_review(self.store, self.recorder, self.review.id, self.voter.id, VoteAction.LIKE)
        self.assertEqual(result["event"], "review_like")
        self.assertEqual(self._stored(), ([v], []))

        result = vote_review(self.store, self.recorder, self.review.id, self.voter.id, VoteAction.DISLIKE)
        self.assertEqual(result["event"], "review_dislike")
        self.assertEqual(self._stored(), ([], [v]))
        self.assertEqual(result["dislikes"], [self.voter.id])
        self.assertEqual((result["like_count"], result["dislike_count"]), (0, 1))
        self.assertEqual(result["viewer_vote"], "dislike")

    def test_second_like_removes_it(self) -> None:
        vote_review(self.store, self.recorder, self.review.id, self.voter.id, VoteAction.LIKE)
        result = vote_review(self.store, self.recorder, self.review.id, self.voter.id, VoteAction.LIKE)

        self.assertEqual(result["event"], "review_unlike")
        self.assertEqual(self._stored(), ([], []))
        self.assertIsNone(result["viewer_vote"])

    def test_vote_activity_recorded_with_event(self) -> None:
        vote_review(self.store, self.recorder, self.review.id, self.voter.id, VoteAction.DISLIKE)

        self.recorder.record.assert_called_once()
        args, kwargs = self.recorder.record.call_args
        self.assertEqual(args, (self.voter.id, "review_dislike"))
        self.assertEqual(kwargs["target_id"], str(self.review.id))
        self.assertEqual(kwargs["details"]["showId"], "1399")

    def test_author_vote_forbidden_and_nothing_written(self) -> None:
        with self.assertRaises(SelfVoteForbiddenError):
            vote_review(self.store, self.recorder, self.review.id, self.author.id, VoteAction.LIKE)
        self.assertEqual(self._stored(), ([], []))
        self.recorder.record.assert_not_called()

    def test_other_voters_preserved(self) -> None:
        others = [uuid.uuid4(), uuid.uuid4()]
        review = self.add_review(self.author, likes=others)

        vote_review(self.store, self.recorder, review.id, self.voter.id, VoteAction.LIKE)

        likes = self.reload(Review, review.id).likes
        self.assertEqual(likes, [str(others[0]), str(others[1]), str(self.voter.id)])

    def test_legacy_double_vote_normalised(self) -> None:
        review = self.add_review(self.author, likes=[self.voter.id], dislikes=[self.voter.id])

        result = vote_review(self.store, self.recorder, review.id, self.voter.id, VoteAction.DISLIKE)

        self.assertEqual(result["event"], "review_dislike")
        row = self.reload(Review, review.id)
        self.assertEqual((row.likes, row.dislikes), ([], [str(self.voter.id)]))

    def test_missing_review(self) -> None:
        with self.assertRaises(ReviewNotFoundError):
            vote_review(self.store, self.recorder, uuid.uuid4(), self.voter.id, VoteAction.LIKE)

    # ── Interleaved requests ──────────────────────────────────────────────────

    def _second_store(self) -> DocumentStore:
        session = self.session_factory()
        self.addCleanup(session.close)
        return DocumentStore(session)

    def _stale_delta(self, store: DocumentStore, action: VoteAction):
        row = store.find_one(Review, self.review.id)
        delta, _ = apply_vote(row.user_id, decode_ids(row.likes), decode_ids(row.dislikes), self.voter.id, action)
        return delta

    def test_like_and_dislike_racing_keep_sets_disjoint(self) -> None:
        other = self._second_store()
        v = str(self.voter.id)

        # Both requests read "neither"; the dislike lands first
        like_delta = self._stale_delta(other, VoteAction.LIKE)
        vote_review(self.store, self.recorder, self.review.id, self.voter.id, VoteAction.DISLIKE)
        self.assertEqual(self._stored(), ([], [v]))

        other.update_one(Review, self.review.id, add_to_set=like_delta.add_to_set, pull=like_delta.pull)

        self.assertEqual(self._stored(), ([v], []))

    def test_identical_likes_racing_leave_one_entry(self) -> None:
        other = self._second_store()

        like_delta = self._stale_delta(other, VoteAction.LIKE)
        vote_review(self.store, self.recorder, self.review.id, self.voter.id, VoteAction.LIKE)
        other.update_one(Review, self.review.id, add_to_set=like_delta.add_to_set, pull=like_delta.pull)

        self.assertEqual(self._stored(), ([str(self.voter.id)], []))


class TestReviewListing(SqliteStoreMixin, unittest.TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.author = self.add_user("author")
        self.viewer = self.add_user("viewer")

    def test_create_review_starts_with_empty_votes(self) -> None:
        result = create_review(
            self.store, self.recorder, self.author.id, "1399", 4.5, "Dragons!", contains_spoiler=True
        )

        self.assertEqual((result["like_count"], result["dislike_count"]), (0, 0))
        self.assertIsNone(result["viewer_vote"])
        self.assertTrue(result["contains_spoiler"])
        self.assertEqual(result["username"], "author")
        row = self.reload(Review, result["id"])
        self.assertEqual((row.likes, row.dislikes), ([], []))

        args, kwargs = self.recorder.record.call_args
        self.assertEqual(args, (self.author.id, "review_create"))
        self.assertEqual(kwargs["target_id"], "1399")

    def test_create_review_for_unknown_author(self) -> None:
        with self.assertRaises(UserNotFoundError):
            create_review(self.store, self.recorder, uuid.uuid4(), "1399", 3, "Hmm")

    def test_show_listing_is_newest_first_with_viewer_vote(self) -> None:
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        older = self.add_review(self.author, created_at=base, likes=[self.viewer.id])
        newer = self.add_review(self.author, created_at=base + timedelta(days=1))
        self.add_review(self.author, show_id="other")

        result = get_reviews_for_show(self.store, "1399", self.viewer.id)

        self.assertEqual(result["total"], 2)
        self.assertEqual([r["id"] for r in result["reviews"]], [newer.id, older.id])
        self.assertEqual(result["reviews"][1]["viewer_vote"], "like")
        self.assertEqual(result["reviews"][1]["like_count"], 1)
        self.assertIsNone(result["reviews"][0]["viewer_vote"])

    def test_listing_pagination(self) -> None:
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        for i in range(5):
            self.add_review(self.author, created_at=base + timedelta(hours=i))

        page = get_reviews_for_show(self.store, "1399", self.viewer.id, limit=2, offset=2)

        self.assertEqual(page["total"], 5)
        self.assertEqual(len(page["reviews"]), 2)

    def test_reviews_by_user(self) -> None:
        self.add_review(self.author)
        self.add_review(self.viewer)

        result = get_reviews_by_user(self.store, self.author.id, self.viewer.id)

        self.assertEqual(result["total"], 1)
        self.assertEqual(result["reviews"][0]["user_id"], self.author.id)
