"""
SQLAlchemy ORM models.

Each row is one document: the socially mutable collections (friend sets,
pending requests, watch history, review votes) are embedded JSON arrays on
the owning row rather than join tables. JSONB is used on Postgres; the
generic JSON type elsewhere (tests run on SQLite).

Embedded arrays must always be *reassigned*, never mutated in place, so the
ORM sees the change. DocumentStore in episodic/db/documents.py does this.
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase


# ── Base ──────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# JSONB on Postgres, plain JSON on every other dialect
JSONDocument = JSON().with_variant(JSONB(), "postgresql")

DEFAULT_PROFILE_PIC = (
    "https://res.cloudinary.com/episodic/image/upload/v1/profilePhotos/"
    "generic_profile_picture.jpg"
)


# ── Timestamp helper ──────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Models ────────────────────────────────────────────────────────────────────

class User(Base):
    """
    Application user.

    friends / friend_requests_sent / friend_requests_recieved hold user ids
    as strings. The "recieved" spelling matches documents written by earlier
    clients and is kept for compatibility.

    watched_history holds WatchEntry dicts (camelCase keys), sorted by
    lastWatchedAt descending and capped at WATCH_HISTORY_LIMIT.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(32), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    profile_pic = Column(String(500), nullable=False, default=DEFAULT_PROFILE_PIC)
    bio = Column(String(200), nullable=False, default="")
    is_active = Column(Boolean, default=True, nullable=False)

    friends = Column(JSONDocument, nullable=False, default=list)
    friend_requests_sent = Column(JSONDocument, nullable=False, default=list)
    friend_requests_recieved = Column(JSONDocument, nullable=False, default=list)
    watched_history = Column(JSONDocument, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"


class Review(Base):
    """
    A user's review of a show.

    show_id is the external metadata id (TMDB), stored as text.
    likes / dislikes are disjoint sets of voter ids; the author never
    appears in either.
    """
    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    show_id = Column(String(64), nullable=False, index=True)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Denormalised for display
    username = Column(String(32), nullable=False)
    rating = Column(Float, nullable=False)
    content = Column(Text, nullable=False)
    contains_spoiler = Column(Boolean, default=False, nullable=False)

    likes = Column(JSONDocument, nullable=False, default=list)
    dislikes = Column(JSONDocument, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="chk_review_rating"),
        Index("idx_reviews_show_created", "show_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Review id={self.id} show_id={self.show_id!r} user_id={self.user_id}>"


class Activity(Base):
    """
    Append-only, denormalised log of user actions.

    Written best-effort after a successful mutation; nothing reads it back
    to make a state decision.
    """
    __tablename__ = "activities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    action = Column(String(32), nullable=False)
    target_id = Column(String(64), nullable=True)
    details = Column(JSONDocument, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_activities_user_created", "user_id", "created_at"),
        Index("idx_activities_action_created", "action", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Activity user_id={self.user_id} action={self.action!r}>"
