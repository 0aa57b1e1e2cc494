"""
Activity log: best-effort recording and feed queries.

ActivityRecorder writes through its own short-lived session so a failed
insert can never roll back, or be rolled back by, the mutation that
triggered it.
"""
import logging
from collections.abc import Callable
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from episodic.db.documents import DocumentStore, decode_ids
from episodic.db.models import Activity, User

logger = logging.getLogger(__name__)

ACTIONS = frozenset({
    "account_creation",
    "review_create",
    "review_like",
    "review_unlike",
    "review_dislike",
    "review_undislike",
    "mark_watched",
    "friend_request",
    "friend_accept",
})


class ActivityRecorder:
    """Fire-and-forget activity sink."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def record(
        self,
        user_id: UUID,
        action: str,
        target_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Append one activity row. Logs and swallows any failure to do so."""
        if action not in ACTIONS:
            logger.warning("Recording unrecognised activity action %r", action)

        try:
            session = self._session_factory()
        except Exception:
            logger.exception("Could not open session to record %s for %s", action, user_id)
            return

        try:
            session.add(
                Activity(
                    user_id=user_id,
                    action=action,
                    target_id=target_id,
                    details=details,
                )
            )
            session.commit()
        except Exception:
            session.rollback()
            logger.exception("Failed to record activity %s for user %s", action, user_id)
        finally:
            session.close()


def _activity_dict(activity: Activity, user: User | None) -> dict:
    return {
        "id": activity.id,
        "user_id": activity.user_id,
        "username": user.username if user else None,
        "profile_pic": user.profile_pic if user else None,
        "action": activity.action,
        "target_id": activity.target_id,
        "details": activity.details or {},
        "created_at": activity.created_at,
    }


def _recent_for(store: DocumentStore, user_ids: list[UUID], limit: int) -> list[dict]:
    if not user_ids:
        return []
    rows = (
        store.session.query(Activity)
        .filter(Activity.user_id.in_(user_ids))
        .order_by(Activity.created_at.desc())
        .limit(limit)
        .all()
    )
    authors = {u.id: u for u in store.find_many(User, {row.user_id for row in rows})}
    return [_activity_dict(row, authors.get(row.user_id)) for row in rows]


def list_my_activity(store: DocumentStore, user_id: UUID, limit: int = 50) -> list[dict]:
    """The user's own recent activity, newest first."""
    return _recent_for(store, [user_id], limit)


def get_friends_feed(store: DocumentStore, user_id: UUID, limit: int = 50) -> list[dict]:
    """Recent activity of everyone in the user's friend set, newest first."""
    user = store.find_one(User, user_id)
    if user is None:
        return []
    return _recent_for(store, sorted(decode_ids(user.friends)), limit)
