"""
Show review business logic: submission, listings, and like/dislike votes.
"""
import logging
from uuid import UUID

from sqlalchemy import func

from episodic.db.documents import DocumentStore, decode_ids
from episodic.db.models import Review
from episodic.services.activity_service import ActivityRecorder
from episodic.services.friend_service import active_user_or_raise
from episodic.services.vote_rules import VoteAction, apply_vote, viewer_vote

logger = logging.getLogger(__name__)


class ReviewNotFoundError(Exception):
    """Raised when a review does not exist."""


def _build_review_dict(review: Review, viewer_id: UUID | None = None) -> dict:
    likes = decode_ids(review.likes)
    dislikes = decode_ids(review.dislikes)
    return {
        "id": review.id,
        "show_id": review.show_id,
        "user_id": review.user_id,
        "username": review.username,
        "rating": review.rating,
        "content": review.content,
        "contains_spoiler": review.contains_spoiler,
        "like_count": len(likes),
        "dislike_count": len(dislikes),
        "viewer_vote": viewer_vote(likes, dislikes, viewer_id) if viewer_id else None,
        "created_at": review.created_at,
    }


def create_review(
    store: DocumentStore,
    recorder: ActivityRecorder,
    author_id: UUID,
    show_id: str,
    rating: float,
    content: str,
    contains_spoiler: bool = False,
) -> dict:
    """Submit a review. Vote sets start empty."""
    author = active_user_or_raise(store, author_id)

    review = store.insert(
        Review(
            show_id=show_id,
            user_id=author.id,
            username=author.username,
            rating=rating,
            content=content,
            contains_spoiler=contains_spoiler,
            likes=[],
            dislikes=[],
        )
    )
    logger.info("Review %s created by %s for show %s", review.id, author_id, show_id)

    recorder.record(
        author_id,
        "review_create",
        target_id=show_id,
        details={"showId": show_id, "rating": rating, "content": content},
    )
    return _build_review_dict(review, author_id)


def _list(store: DocumentStore, criterion, viewer_id: UUID, limit: int, offset: int) -> dict:
    total = store.session.query(func.count(Review.id)).filter(criterion).scalar()
    rows = (
        store.session.query(Review)
        .filter(criterion)
        .order_by(Review.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return {
        "reviews": [_build_review_dict(row, viewer_id) for row in rows],
        "total": total,
    }


def get_reviews_for_show(
    store: DocumentStore,
    show_id: str,
    viewer_id: UUID,
    limit: int = 20,
    offset: int = 0,
) -> dict:
    """Reviews of one show, newest first."""
    return _list(store, Review.show_id == show_id, viewer_id, limit, offset)


def get_reviews_by_user(
    store: DocumentStore,
    target_user_id: UUID,
    viewer_id: UUID,
    limit: int = 20,
    offset: int = 0,
) -> dict:
    """Reviews written by one user, newest first."""
    return _list(store, Review.user_id == target_user_id, viewer_id, limit, offset)


def vote_review(
    store: DocumentStore,
    recorder: ActivityRecorder,
    review_id: UUID,
    voter_id: UUID,
    action: VoteAction,
) -> dict:
    """
    Toggle *voter_id*'s like or dislike on a review.

    Decides from a fresh read, then applies the delta as one update on the
    review document. Returns the vote sets read back from that update.
    """
    review = store.find_one(Review, review_id)
    if review is None:
        raise ReviewNotFoundError(f"Review {review_id} not found")

    delta, event = apply_vote(
        review.user_id,
        decode_ids(review.likes),
        decode_ids(review.dislikes),
        voter_id,
        action,
    )

    updated = store.update_one(
        Review,
        review_id,
        add_to_set=delta.add_to_set,
        pull=delta.pull,
    )
    if updated is None:
        raise ReviewNotFoundError(f"Review {review_id} not found")
    logger.debug("Vote %s on review %s by %s", event.value, review_id, voter_id)

    recorder.record(
        voter_id,
        event.value,
        target_id=str(review_id),
        details={"showId": updated.show_id, "reviewAuthorId": str(updated.user_id)},
    )

    likes = decode_ids(updated.likes)
    dislikes = decode_ids(updated.dislikes)
    return {
        "review_id": review_id,
        "likes": sorted(likes, key=str),
        "dislikes": sorted(dislikes, key=str),
        "like_count": len(likes),
        "dislike_count": len(dislikes),
        "event": event.value,
        "viewer_vote": viewer_vote(likes, dislikes, voter_id),
    }
