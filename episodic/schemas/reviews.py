"""
Review request/response schemas.
"""
from datetime import datetime
from uuid import UUID

from pydantic import Field

from episodic.schemas.watched import CamelModel


class CreateReviewRequest(CamelModel):
    """Submit a review for a show."""

    show_id: str = Field(..., min_length=1, max_length=64)
    rating: float = Field(..., ge=0, le=5)
    content: str = Field(..., min_length=1, max_length=2000)
    contains_spoiler: bool = False


class ReviewResponse(CamelModel):
    """A single review with vote tallies from the viewer's perspective."""

    id: UUID
    show_id: str
    user_id: UUID
    username: str
    rating: float
    content: str
    contains_spoiler: bool = False
    like_count: int = 0
    dislike_count: int = 0
    viewer_vote: str | None = None
    created_at: datetime


class ReviewListResponse(CamelModel):
    """Paginated list of reviews."""

    reviews: list[ReviewResponse]
    total: int


class VoteResponse(CamelModel):
    """Vote sets after a like/dislike toggle, plus the event it produced."""

    review_id: UUID
    likes: list[UUID]
    dislikes: list[UUID]
    like_count: int
    dislike_count: int
    event: str
    viewer_vote: str | None = None
