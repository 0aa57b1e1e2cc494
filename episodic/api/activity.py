"""
Activity API (/activity)
────────────────────────
Endpoints:
  GET /activity        My recent activity
  GET /activity/feed   Recent activity of my friends
"""
from fastapi import APIRouter, Depends, Query

from episodic.db.documents import DocumentStore
from episodic.db.models import User
from episodic.deps.auth import get_current_user
from episodic.deps.store import get_store
from episodic.schemas.activity import ActivityItem
from episodic.services.activity_service import get_friends_feed, list_my_activity

router = APIRouter()


@router.get("", response_model=list[ActivityItem])
def my_activity(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> list[dict]:
    return list_my_activity(store, current_user.id, limit=limit)


@router.get("/feed", response_model=list[ActivityItem])
def friends_feed(
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> list[dict]:
    return get_friends_feed(store, current_user.id, limit=limit)
