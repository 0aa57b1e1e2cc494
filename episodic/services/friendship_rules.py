"""
Friendship Rules
────────────────
Pure transition logic for the friend graph. No DB access.

A pair of users (A, B) is always in exactly one of four states:

    UNRELATED         nothing pending, not friends
    OUTGOING_PENDING  A asked B        (B in A.sent, A in B.received)
    INCOMING_PENDING  B asked A        (A in B.sent, B in A.received)
    FRIENDS           A in B.friends and B in A.friends

The two halves of a pair live on two separate user documents and are written
by two separate single-document updates, so a crash between them can leave
a marker on one side only. ``reconcile_pair`` turns any such half-written
pair back into one of the four states above; every ``plan_*`` function
expects reconciled snapshots.

Every plan returns a list of UserDelta values: idempotent add/pull operations
on one user document each, applied by friend_service through DocumentStore.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from uuid import UUID

FRIENDS = "friends"
REQUESTS_SENT = "friend_requests_sent"
REQUESTS_RECEIVED = "friend_requests_recieved"


# ── Exceptions ────────────────────────────────────────────────────────────────

class SelfRequestError(Exception):
    """Raised when a user targets themselves with a friendship action."""


class AlreadyRequestedError(Exception):
    """Raised when a friend request to this user is already pending."""


class AlreadyFriendsError(Exception):
    """Raised when the two users are already friends."""


class IncomingRequestPendingError(Exception):
    """Raised when the target has already sent a request the other way."""


class NoSuchRequestError(Exception):
    """Raised when there is no pending request to accept, decline or cancel."""


# ── Types ─────────────────────────────────────────────────────────────────────

class FriendshipState(str, Enum):
    UNRELATED = "unrelated"
    OUTGOING_PENDING = "outgoing_pending"
    INCOMING_PENDING = "incoming_pending"
    FRIENDS = "friends"


@dataclass(frozen=True)
class SocialSnapshot:
    """The friend-graph fields of one user document at read time."""

    user_id: UUID
    friends: frozenset[UUID] = frozenset()
    requests_sent: frozenset[UUID] = frozenset()
    requests_received: frozenset[UUID] = frozenset()


@dataclass
class UserDelta:
    """Idempotent set operations against one user document."""

    user_id: UUID
    add_to_set: dict[str, set[UUID]] = field(default_factory=dict)
    pull: dict[str, set[UUID]] = field(default_factory=dict)

    def add(self, field_name: str, member: UUID) -> "UserDelta":
        self.add_to_set.setdefault(field_name, set()).add(member)
        return self

    def remove(self, field_name: str, member: UUID) -> "UserDelta":
        self.pull.setdefault(field_name, set()).add(member)
        return self

    def is_empty(self) -> bool:
        return not any(self.add_to_set.values()) and not any(self.pull.values())


_SNAPSHOT_FIELDS = {
    FRIENDS: "friends",
    REQUESTS_SENT: "requests_sent",
    REQUESTS_RECEIVED: "requests_received",
}


def apply_delta(snapshot: SocialSnapshot, delta: UserDelta) -> SocialSnapshot:
    """Return the snapshot as it looks after *delta* (pull, then add)."""
    if delta.user_id != snapshot.user_id:
        raise ValueError("Delta does not target this snapshot")
    changes = {}
    for doc_field, attr in _SNAPSHOT_FIELDS.items():
        members = set(getattr(snapshot, attr))
        members -= delta.pull.get(doc_field, set())
        members |= delta.add_to_set.get(doc_field, set())
        changes[attr] = frozenset(members)
    return replace(snapshot, **changes)


def _merge(deltas: list[UserDelta]) -> list[UserDelta]:
    """Collapse deltas per user, preserving first-seen order. Drops empties."""
    merged: dict[UUID, UserDelta] = {}
    for delta in deltas:
        target = merged.setdefault(delta.user_id, UserDelta(delta.user_id))
        for name, members in delta.pull.items():
            for member in members:
                target.remove(name, member)
        for name, members in delta.add_to_set.items():
            for member in members:
                target.add(name, member)
    return [d for d in merged.values() if not d.is_empty()]


def _clear_markers(a: UUID, b: UUID) -> list[UserDelta]:
    """Pull every pending-request marker between a and b, in both directions."""
    return [
        UserDelta(a).remove(REQUESTS_SENT, b).remove(REQUESTS_RECEIVED, b),
        UserDelta(b).remove(REQUESTS_SENT, a).remove(REQUESTS_RECEIVED, a),
    ]


# ── State ─────────────────────────────────────────────────────────────────────

def relation_state(a: SocialSnapshot, b: SocialSnapshot) -> FriendshipState:
    """State of the pair as seen from *a*. Expects reconciled snapshots."""
    if b.user_id in a.friends:
        return FriendshipState.FRIENDS
    if b.user_id in a.requests_sent:
        return FriendshipState.OUTGOING_PENDING
    if b.user_id in a.requests_received:
        return FriendshipState.INCOMING_PENDING
    return FriendshipState.UNRELATED


def reconcile_pair(
    a: SocialSnapshot,
    b: SocialSnapshot,
) -> tuple[SocialSnapshot, SocialSnapshot, list[UserDelta]]:
    """
    Repair a half-written pair.

    Returns the repaired snapshots plus the deltas that make the stored
    documents match them (empty when the pair was already consistent).

    Rules, first match wins:
      * friendship on either side: both become friends, markers cleared
      * requests pending in both directions (two sends that crossed):
        both asked, so both become friends, markers cleared
      * request marker on either side: the missing mirror is added
    """
    if a.user_id == b.user_id:
        return a, b, []

    deltas: list[UserDelta] = []

    a_asked = b.user_id in a.requests_sent or a.user_id in b.requests_received
    b_asked = a.user_id in b.requests_sent or b.user_id in a.requests_received

    if b.user_id in a.friends or a.user_id in b.friends or (a_asked and b_asked):
        deltas.append(UserDelta(a.user_id).add(FRIENDS, b.user_id))
        deltas.append(UserDelta(b.user_id).add(FRIENDS, a.user_id))
        deltas.extend(_clear_markers(a.user_id, b.user_id))
    else:
        if a_asked:
            deltas.append(UserDelta(a.user_id).add(REQUESTS_SENT, b.user_id))
            deltas.append(UserDelta(b.user_id).add(REQUESTS_RECEIVED, a.user_id))
        elif b_asked:
            deltas.append(UserDelta(b.user_id).add(REQUESTS_SENT, a.user_id))
            deltas.append(UserDelta(a.user_id).add(REQUESTS_RECEIVED, b.user_id))

    merged = _merge(deltas)
    # Keep only operations that actually change something
    needed = []
    for delta in merged:
        before = a if delta.user_id == a.user_id else b
        if apply_delta(before, delta) != before:
            needed.append(delta)

    for delta in needed:
        if delta.user_id == a.user_id:
            a = apply_delta(a, delta)
        else:
            b = apply_delta(b, delta)
    return a, b, needed


# ── Transitions ───────────────────────────────────────────────────────────────

def plan_send_request(sender: SocialSnapshot, target: SocialSnapshot) -> list[UserDelta]:
    """UNRELATED -> OUTGOING_PENDING. Sender's document is written first."""
    if sender.user_id == target.user_id:
        raise SelfRequestError("You cannot send a friend request to yourself")

    state = relation_state(sender, target)
    if state is FriendshipState.FRIENDS:
        raise AlreadyFriendsError("You are already friends with this user")
    if state is FriendshipState.OUTGOING_PENDING:
        raise AlreadyRequestedError("Friend request already sent")
    if state is FriendshipState.INCOMING_PENDING:
        raise IncomingRequestPendingError(
            "This user has already sent you a friend request"
        )

    return [
        UserDelta(sender.user_id).add(REQUESTS_SENT, target.user_id),
        UserDelta(target.user_id).add(REQUESTS_RECEIVED, sender.user_id),
    ]


def plan_accept_request(receiver: SocialSnapshot, requester: SocialSnapshot) -> list[UserDelta]:
    """
    OUTGOING_PENDING (requester -> receiver) -> FRIENDS.

    The receiver's document, which holds the request marker, is written
    first. A duplicate accept finds no marker and fails with
    NoSuchRequestError instead of adding the friend twice.
    """
    if receiver.user_id == requester.user_id:
        raise SelfRequestError("You cannot accept a friend request from yourself")
    if requester.user_id not in receiver.requests_received:
        raise NoSuchRequestError("No pending friend request from this user")

    receiver_delta, requester_delta = _clear_markers(receiver.user_id, requester.user_id)
    receiver_delta.add(FRIENDS, requester.user_id)
    requester_delta.add(FRIENDS, receiver.user_id)
    return [receiver_delta, requester_delta]


def plan_decline_request(receiver: SocialSnapshot, requester: SocialSnapshot) -> list[UserDelta]:
    """Receiver rejects an incoming request. Back to UNRELATED."""
    if receiver.user_id == requester.user_id:
        raise SelfRequestError("You cannot decline a friend request from yourself")
    if requester.user_id not in receiver.requests_received:
        raise NoSuchRequestError("No pending friend request from this user")
    return _clear_markers(receiver.user_id, requester.user_id)


def plan_cancel_request(sender: SocialSnapshot, target: SocialSnapshot) -> list[UserDelta]:
    """Sender withdraws an outgoing request. Back to UNRELATED."""
    if sender.user_id == target.user_id:
        raise SelfRequestError("You cannot cancel a friend request to yourself")
    if target.user_id not in sender.requests_sent:
        raise NoSuchRequestError("No pending friend request to this user")
    return _clear_markers(sender.user_id, target.user_id)
