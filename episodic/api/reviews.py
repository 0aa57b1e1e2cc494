"""
Reviews API (/reviews)
──────────────────────
Show reviews: submit, list, like/dislike.

Endpoints:
  POST   /reviews                       Submit a review
  GET    /reviews/show/{show_id}        Reviews for a show
  GET    /reviews/user/{user_id}        Reviews by a user
  POST   /reviews/{review_id}/like      Toggle like on a review
  POST   /reviews/{review_id}/dislike   Toggle dislike on a review
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from episodic.db.documents import DocumentStore
from episodic.db.models import User
from episodic.deps.auth import get_current_user
from episodic.deps.store import get_activity_recorder, get_store
from episodic.schemas.reviews import (
    CreateReviewRequest,
    ReviewListResponse,
    ReviewResponse,
    VoteResponse,
)
from episodic.services.activity_service import ActivityRecorder
from episodic.services.friend_service import UserNotFoundError
from episodic.services.review_service import (
    ReviewNotFoundError,
    create_review,
    get_reviews_by_user,
    get_reviews_for_show,
    vote_review,
)
from episodic.services.vote_rules import SelfVoteForbiddenError, VoteAction

router = APIRouter()


def _error(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def _vote(
    review_id: UUID,
    action: VoteAction,
    voter: User,
    store: DocumentStore,
    recorder: ActivityRecorder,
) -> dict:
    try:
        return vote_review(store, recorder, review_id, voter.id, action)
    except ReviewNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_error("REVIEW_NOT_FOUND", str(exc)),
        ) from exc
    except SelfVoteForbiddenError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=_error("SELF_VOTE_FORBIDDEN", str(exc)),
        ) from exc


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def submit_review(
    payload: CreateReviewRequest,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> dict:
    try:
        return create_review(
            store,
            recorder,
            current_user.id,
            payload.show_id,
            payload.rating,
            payload.content,
            payload.contains_spoiler,
        )
    except UserNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_error("USER_NOT_FOUND", str(exc)),
        ) from exc


@router.get("/show/{show_id}", response_model=ReviewListResponse)
def show_reviews(
    show_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    return get_reviews_for_show(store, show_id, current_user.id, limit=limit, offset=offset)


@router.get("/user/{user_id}", response_model=ReviewListResponse)
def user_reviews(
    user_id: UUID,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    return get_reviews_by_user(store, user_id, current_user.id, limit=limit, offset=offset)


@router.post("/{review_id}/like", response_model=VoteResponse)
def like_review(
    review_id: UUID,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> dict:
    return _vote(review_id, VoteAction.LIKE, current_user, store, recorder)


@router.post("/{review_id}/dislike", response_model=VoteResponse)
def dislike_review(
    review_id: UUID,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> dict:
    return _vote(review_id, VoteAction.DISLIKE, current_user, store, recorder)
