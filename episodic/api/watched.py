"""
Watched API (/users)
────────────────────
Endpoints:
  POST /users/mark-watched                  Mark episodes of a show watched
  GET  /users/{user_id}/recently-watched    A user's watch history, newest first
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from episodic.db.documents import DocumentStore
from episodic.db.models import User
from episodic.deps.auth import get_current_user
from episodic.deps.store import get_activity_recorder, get_store
from episodic.schemas.watched import MarkWatchedRequest, MarkWatchedResponse, WatchEntry
from episodic.services.activity_service import ActivityRecorder
from episodic.services.friend_service import UserNotFoundError
from episodic.services.watch_history import InvalidWatchPayloadError
from episodic.services.watched_service import get_recently_watched, mark_watched

router = APIRouter()


def _error(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


@router.post("/mark-watched", response_model=MarkWatchedResponse)
def mark_episodes_watched(
    payload: MarkWatchedRequest,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> dict:
    try:
        return mark_watched(
            store,
            recorder,
            current_user.id,
            payload.show_id,
            payload.show_name,
            payload.poster_path,
            payload.season_number,
            payload.episodes,
        )
    except InvalidWatchPayloadError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_error("INVALID_WATCH_PAYLOAD", str(exc)),
        ) from exc
    except UserNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_error("USER_NOT_FOUND", str(exc)),
        ) from exc


@router.get("/{user_id}/recently-watched", response_model=list[WatchEntry])
def recently_watched(
    user_id: UUID,
    limit: int | None = Query(None, ge=1),
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> list[WatchEntry]:
    try:
        return get_recently_watched(store, user_id, limit=limit)
    except UserNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_error("USER_NOT_FOUND", str(exc)),
        ) from exc
