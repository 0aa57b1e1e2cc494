"""
Activity feed schemas.
"""
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from episodic.schemas.watched import CamelModel


class ActivityItem(CamelModel):
    """One logged action."""

    id: UUID
    user_id: UUID
    username: str | None = None
    profile_pic: str | None = None
    action: str
    target_id: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
