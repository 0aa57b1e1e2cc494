"""
Friends API (/friends)
───────────────────────
Friend requests and friend lists.

Endpoints:
  POST   /friends/request/{target_id}     Send a friend request
  DELETE /friends/request/{target_id}     Cancel a request I sent
  POST   /friends/accept/{requester_id}   Accept an incoming request
  POST   /friends/decline/{requester_id}  Decline an incoming request
  GET    /friends/requests                Incoming requests
  GET    /friends/requests/sent           Outgoing requests
  GET    /friends/relation/{user_id}      Friendship state with a user
  GET    /friends/list/{user_id}          A user's friends
"""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from episodic.db.documents import DocumentStore
from episodic.db.models import User
from episodic.deps.auth import get_current_user
from episodic.deps.store import get_activity_recorder, get_store
from episodic.schemas.friends import FriendActionResponse, FriendPreview, RelationResponse
from episodic.services.activity_service import ActivityRecorder
from episodic.services.friend_service import (
    UserNotFoundError,
    accept_friend_request,
    cancel_friend_request,
    decline_friend_request,
    get_relation,
    list_friends,
    list_incoming_requests,
    list_outgoing_requests,
    send_friend_request,
)
from episodic.services.friendship_rules import (
    AlreadyFriendsError,
    AlreadyRequestedError,
    IncomingRequestPendingError,
    NoSuchRequestError,
    SelfRequestError,
)

router = APIRouter()

# exception type -> (HTTP status, error code)
_ERRORS: dict[type[Exception], tuple[int, str]] = {
    SelfRequestError: (status.HTTP_400_BAD_REQUEST, "SELF_REQUEST"),
    UserNotFoundError: (status.HTTP_404_NOT_FOUND, "USER_NOT_FOUND"),
    NoSuchRequestError: (status.HTTP_404_NOT_FOUND, "NO_SUCH_REQUEST"),
    AlreadyRequestedError: (status.HTTP_409_CONFLICT, "ALREADY_REQUESTED"),
    AlreadyFriendsError: (status.HTTP_409_CONFLICT, "ALREADY_FRIENDS"),
    IncomingRequestPendingError: (status.HTTP_409_CONFLICT, "INCOMING_REQUEST_PENDING"),
}
_HANDLED = tuple(_ERRORS)


def _error(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def _http_error(exc: Exception) -> HTTPException:
    status_code, code = _ERRORS[type(exc)]
    return HTTPException(status_code=status_code, detail=_error(code, str(exc)))


# ── Mutations ─────────────────────────────────────────────────────────────────

@router.post("/request/{target_id}", response_model=FriendActionResponse)
def send_request(
    target_id: UUID,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> dict:
    try:
        return send_friend_request(store, recorder, current_user.id, target_id)
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@router.delete("/request/{target_id}", response_model=FriendActionResponse)
def cancel_request(
    target_id: UUID,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    try:
        return cancel_friend_request(store, current_user.id, target_id)
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@router.post("/accept/{requester_id}", response_model=FriendActionResponse)
def accept_request(
    requester_id: UUID,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> dict:
    try:
        return accept_friend_request(store, recorder, current_user.id, requester_id)
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@router.post("/decline/{requester_id}", response_model=FriendActionResponse)
def decline_request(
    requester_id: UUID,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    try:
        return decline_friend_request(store, current_user.id, requester_id)
    except _HANDLED as exc:
        raise _http_error(exc) from exc


# ── Reads ─────────────────────────────────────────────────────────────────────

@router.get("/requests", response_model=list[FriendPreview])
def incoming_requests(
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> list[dict]:
    return list_incoming_requests(store, current_user.id)


@router.get("/requests/sent", response_model=list[FriendPreview])
def outgoing_requests(
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> list[dict]:
    return list_outgoing_requests(store, current_user.id)


@router.get("/relation/{user_id}", response_model=RelationResponse)
def relation(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> dict:
    try:
        return {"user_id": user_id, "state": get_relation(store, current_user.id, user_id)}
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@router.get("/list/{user_id}", response_model=list[FriendPreview])
def friends_of(
    user_id: UUID,
    current_user: User = Depends(get_current_user),
    store: DocumentStore = Depends(get_store),
) -> list[dict]:
    try:
        return list_friends(store, user_id)
    except UserNotFoundError as exc:
        raise _http_error(exc) from exc
