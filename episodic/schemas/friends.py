"""
Friend graph request/response schemas.
"""
from uuid import UUID

from pydantic import BaseModel

from episodic.schemas.watched import CamelModel


class FriendActionResponse(BaseModel):
    """Returned by request / accept / decline / cancel."""

    success: bool = True
    message: str
    state: str


class FriendPreview(CamelModel):
    """One user in a friend or pending-request list."""

    id: UUID
    username: str
    profile_pic: str | None = None


class RelationResponse(CamelModel):
    """Friendship state between the viewer and another user."""

    user_id: UUID
    state: str
