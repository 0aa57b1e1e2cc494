"""
Friend graph business logic: request, accept, decline, cancel, and lists.

Every mutation follows the same steps:
  1. reject self-targeting before any document is read
  2. read both user documents
  3. reconcile the pair and persist any repairs (friendship_rules)
  4. plan the transition on the reconciled snapshots
  5. apply one idempotent update per document
  6. record the activity (best effort)
"""
import logging
from uuid import UUID

from episodic.core.config import settings
from episodic.db.documents import DocumentStore, decode_ids
from episodic.db.models import User
from episodic.services.activity_service import ActivityRecorder
from episodic.services.friendship_rules import (
    SelfRequestError,
    SocialSnapshot,
    UserDelta,
    plan_accept_request,
    plan_cancel_request,
    plan_decline_request,
    plan_send_request,
    reconcile_pair,
    relation_state,
)

logger = logging.getLogger(__name__)


class UserNotFoundError(Exception):
    """Raised when the target user does not exist."""


# ── Helpers ───────────────────────────────────────────────────────────────────

def snapshot_of(user: User) -> SocialSnapshot:
    return SocialSnapshot(
        user_id=user.id,
        friends=decode_ids(user.friends),
        requests_sent=decode_ids(user.friend_requests_sent),
        requests_received=decode_ids(user.friend_requests_recieved),
    )


def active_user_or_raise(store: DocumentStore, user_id: UUID) -> User:
    user = store.find_one(User, user_id)
    if user is None or not user.is_active:
        raise UserNotFoundError(f"User {user_id} not found")
    return user


def _write(store: DocumentStore, deltas: list[UserDelta], atomic: bool | None = None) -> None:
    """Apply deltas in order, one single-document update each."""
    if atomic is None:
        atomic = settings.FRIENDSHIP_ATOMIC_WRITES

    def _apply_all() -> None:
        for delta in deltas:
            updated = store.update_one(
                User,
                delta.user_id,
                add_to_set=delta.add_to_set,
                pull=delta.pull,
            )
            if updated is None:
                raise UserNotFoundError(f"User {delta.user_id} not found")

    if atomic:
        with store.atomic():
            _apply_all()
    else:
        _apply_all()


def _reconciled_pair(
    store: DocumentStore,
    first_id: UUID,
    second_id: UUID,
) -> tuple[SocialSnapshot, SocialSnapshot]:
    first = active_user_or_raise(store, first_id)
    second = active_user_or_raise(store, second_id)

    first_snap, second_snap, repairs = reconcile_pair(snapshot_of(first), snapshot_of(second))
    if repairs:
        logger.warning(
            "Repairing half-written friendship state between %s and %s (%d updates)",
            first_id,
            second_id,
            len(repairs),
        )
        _write(store, repairs)
    return first_snap, second_snap


def _user_previews(store: DocumentStore, ids: frozenset[UUID]) -> list[dict]:
    rows = store.find_many(User, ids)
    return [
        {"id": row.id, "username": row.username, "profile_pic": row.profile_pic}
        for row in sorted(rows, key=lambda r: r.username)
        if row.is_active
    ]


# ── Mutations ─────────────────────────────────────────────────────────────────

def send_friend_request(
    store: DocumentStore,
    recorder: ActivityRecorder,
    sender_id: UUID,
    target_id: UUID,
) -> dict:
    """A asks B. Raises on self-request, pending request either way, or friends."""
    if sender_id == target_id:
        raise SelfRequestError("You cannot send a friend request to yourself")

    sender, target = _reconciled_pair(store, sender_id, target_id)
    _write(store, plan_send_request(sender, target))
    logger.info("Friend request %s -> %s", sender_id, target_id)

    recorder.record(sender_id, "friend_request", target_id=str(target_id))
    return {"success": True, "message": "Friend request sent", "state": "outgoing_pending"}


def accept_friend_request(
    store: DocumentStore,
    recorder: ActivityRecorder,
    receiver_id: UUID,
    requester_id: UUID,
) -> dict:
    """B accepts A's pending request; both become friends."""
    if receiver_id == requester_id:
        raise SelfRequestError("You cannot accept a friend request from yourself")

    receiver, requester = _reconciled_pair(store, receiver_id, requester_id)
    _write(store, plan_accept_request(receiver, requester))
    logger.info("Friend request %s -> %s accepted", requester_id, receiver_id)

    recorder.record(receiver_id, "friend_accept", target_id=str(requester_id))
    return {"success": True, "message": "Friend request accepted", "state": "friends"}


def decline_friend_request(store: DocumentStore, receiver_id: UUID, requester_id: UUID) -> dict:
    """B rejects A's pending request."""
    if receiver_id == requester_id:
        raise SelfRequestError("You cannot decline a friend request from yourself")

    receiver, requester = _reconciled_pair(store, receiver_id, requester_id)
    _write(store, plan_decline_request(receiver, requester))
    logger.info("Friend request %s -> %s declined", requester_id, receiver_id)
    return {"success": True, "message": "Friend request declined", "state": "unrelated"}


def cancel_friend_request(store: DocumentStore, sender_id: UUID, target_id: UUID) -> dict:
    """A withdraws the request A sent to B."""
    if sender_id == target_id:
        raise SelfRequestError("You cannot cancel a friend request to yourself")

    sender, target = _reconciled_pair(store, sender_id, target_id)
    _write(store, plan_cancel_request(sender, target))
    logger.info("Friend request %s -> %s cancelled", sender_id, target_id)
    return {"success": True, "message": "Friend request cancelled", "state": "unrelated"}


# ── Reads ─────────────────────────────────────────────────────────────────────

def get_relation(store: DocumentStore, viewer_id: UUID, other_id: UUID) -> str:
    """Friendship state of (viewer, other) from the viewer's side."""
    if viewer_id == other_id:
        raise SelfRequestError("A user has no friendship state with themselves")
    viewer, other = _reconciled_pair(store, viewer_id, other_id)
    return relation_state(viewer, other).value


def list_friends(store: DocumentStore, user_id: UUID) -> list[dict]:
    user = active_user_or_raise(store, user_id)
    return _user_previews(store, decode_ids(user.friends))


def list_incoming_requests(store: DocumentStore, user_id: UUID) -> list[dict]:
    """Users who have asked *user_id* to be friends."""
    user = active_user_or_raise(store, user_id)
    return _user_previews(store, decode_ids(user.friend_requests_recieved))


def list_outgoing_requests(store: DocumentStore, user_id: UUID) -> list[dict]:
    user = active_user_or_raise(store, user_id)
    return _user_previews(store, decode_ids(user.friend_requests_sent))
