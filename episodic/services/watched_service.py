"""
Mark-watched and recently-watched operations on a user's watch history.
"""
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from uuid import UUID

from pydantic import ValidationError

from episodic.core.config import settings
from episodic.db.documents import DocumentStore
from episodic.db.models import User
from episodic.schemas.watched import EpisodeInput, WatchEntry
from episodic.services.activity_service import ActivityRecorder
from episodic.services.friend_service import UserNotFoundError, active_user_or_raise
from episodic.services.watch_history import dump_history, merge_watched, validate_watch_payload

logger = logging.getLogger(__name__)


def load_history(user: User) -> list[WatchEntry]:
    """Parse the stored history. Entries that no longer parse are dropped."""
    entries = []
    for raw in user.watched_history or []:
        try:
            entries.append(WatchEntry.model_validate(raw))
        except ValidationError:
            logger.warning("Dropping malformed watch history entry for user %s: %r", user.id, raw)
    return entries


def mark_watched(
    store: DocumentStore,
    recorder: ActivityRecorder,
    user_id: UUID,
    show_id: str,
    show_name: str,
    poster_path: str | None,
    season_number: int,
    episodes: Sequence[EpisodeInput],
    now: datetime | None = None,
) -> dict:
    """
    Merge episodes into the user's history and persist the whole list.

    Recomputes from a fresh read every time; concurrent calls for the same
    user resolve as last write wins.
    """
    validate_watch_payload(show_id, show_name, season_number, episodes)
    now = now or datetime.now(timezone.utc)

    user = active_user_or_raise(store, user_id)
    history, entry = merge_watched(
        load_history(user),
        show_id,
        show_name,
        poster_path,
        season_number,
        episodes,
        now=now,
        limit=settings.WATCH_HISTORY_LIMIT,
    )

    updated = store.update_one(
        User,
        user_id,
        set_={"watched_history": dump_history(history), "updated_at": now},
    )
    if updated is None:
        raise UserNotFoundError(f"User {user_id} not found")
    logger.info(
        "User %s marked %d episode(s) of show %s watched", user_id, len(episodes), show_id
    )

    recorder.record(
        user_id,
        "mark_watched",
        target_id=show_id,
        details={
            "showName": show_name,
            "posterPath": poster_path,
            "seasonNumber": season_number,
            "episodeCount": len(episodes),
        },
    )
    return {
        "success": True,
        "message": f"{len(episodes)} episode(s) from {show_name} marked as watched",
        "entry": entry,
        "history_size": len(history),
    }


def get_recently_watched(store: DocumentStore, user_id: UUID, limit: int | None = None) -> list[WatchEntry]:
    """Most recently watched shows first; the stored order is already ranked."""
    user = active_user_or_raise(store, user_id)
    history = load_history(user)
    if limit is not None:
        history = history[:limit]
    return history
