"""
Watch History Merger
────────────────────
Pure merge of newly watched episodes into a user's watch history.

The history is a list of WatchEntry values, one per show, kept sorted by
last_watched_at (most recent first) and capped at a fixed size. Merging:

  1. find the entry for the show (linear scan, the list is capped)
  2. existing entry: bump last_watched_at; re-marked episodes get a new
     watched_at and, if it changed, the new season number; new episodes
     are appended
  3. no entry: create one holding every input episode
  4. re-sort by last_watched_at descending
  5. keep the first ``limit`` entries; the rest are evicted

Re-marking the same episode never duplicates it, so a retried request is
harmless.
"""
from collections.abc import Sequence
from datetime import datetime, timezone

from episodic.schemas.watched import EpisodeInput, WatchedEpisode, WatchEntry

DEFAULT_HISTORY_LIMIT = 50


class InvalidWatchPayloadError(Exception):
    """Raised when a mark-watched payload is missing required data."""


def validate_watch_payload(
    show_id: str | None,
    show_name: str | None,
    season_number: int | None,
    episodes: Sequence[EpisodeInput] | None,
) -> None:
    """Reject incomplete input before anything is read or written."""
    if not show_id or not str(show_id).strip():
        raise InvalidWatchPayloadError("showId is required")
    if not show_name or not show_name.strip():
        raise InvalidWatchPayloadError("showName is required")
    if season_number is None or season_number < 0:
        raise InvalidWatchPayloadError("seasonNumber must be a non-negative integer")
    if not episodes:
        raise InvalidWatchPayloadError("At least one episode is required")


def merge_watched(
    history: Sequence[WatchEntry],
    show_id: str,
    show_name: str,
    poster_path: str | None,
    season_number: int,
    episodes: Sequence[EpisodeInput],
    now: datetime | None = None,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> tuple[list[WatchEntry], WatchEntry]:
    """
    Return ``(new_history, touched_entry)``. *history* is left untouched.

    Raises:
        InvalidWatchPayloadError: on incomplete input.
    """
    validate_watch_payload(show_id, show_name, season_number, episodes)
    if limit < 1:
        raise ValueError("limit must be at least 1")
    now = now or datetime.now(timezone.utc)

    entries = [entry.model_copy(deep=True) for entry in history]
    entry = next((e for e in entries if e.show_id == show_id), None)
    if entry is None:
        entry = WatchEntry(
            show_id=show_id,
            show_name=show_name,
            poster_path=poster_path,
            last_watched_at=now,
        )
        entries.append(entry)
    else:
        entry.last_watched_at = now

    by_id = {episode.episode_id: episode for episode in entry.episodes}
    for item in episodes:
        existing = by_id.get(item.episode_id)
        if existing is not None:
            existing.watched_at = now
            if existing.season_number != season_number:
                existing.season_number = season_number
            continue
        watched = WatchedEpisode(
            episode_id=item.episode_id,
            number=item.number,
            name=item.name,
            season_number=season_number,
            watched_at=now,
        )
        entry.episodes.append(watched)
        by_id[item.episode_id] = watched

    entries.sort(key=lambda e: e.last_watched_at, reverse=True)
    return entries[:limit], entry


def dump_history(history: Sequence[WatchEntry]) -> list[dict]:
    """Stored (JSON, camelCase) form of a history list."""
    return [entry.model_dump(mode="json", by_alias=True) for entry in history]
