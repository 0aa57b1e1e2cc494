"""
Auth request/response schemas.
"""
import re
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from episodic.schemas.watched import WatchEntry


class SignupRequest(BaseModel):
    """Payload for POST /auth/signup."""

    username: str
    email: EmailStr
    password: str

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3 or len(v) > 32:
            raise ValueError("Username must be between 3 and 32 characters")
        if not re.match(r"^[a-zA-Z0-9_]+$", v):
            raise ValueError("Username may only contain letters, digits, and underscores")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v


class TokenResponse(BaseModel):
    """Returned after successful login."""

    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """
    The authenticated user's own document.

    Social fields keep the JSON names earlier clients read, including the
    "Recieved" spelling.
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    username: str
    email: str
    profile_pic: str | None = Field(default=None, serialization_alias="profilePic")
    bio: str = ""
    friends: list[UUID] = Field(default_factory=list)
    friend_requests_sent: list[UUID] = Field(
        default_factory=list, serialization_alias="friendRequestsSent"
    )
    friend_requests_recieved: list[UUID] = Field(
        default_factory=list, serialization_alias="friendRequestsRecieved"
    )
    watched_history: list[WatchEntry] = Field(
        default_factory=list, serialization_alias="watchedHistory"
    )
