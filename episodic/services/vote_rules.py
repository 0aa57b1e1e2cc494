"""
Vote Rules
──────────
Pure like/dislike toggle for one voter on one review. No DB access.

A voter is in at most one of {likes, dislikes}. Repeating an action undoes
it; switching actions moves the voter across in one step:

    current     like                          dislike
    ─────────   ───────────────────────────   ───────────────────────────────
    neither     -dislikes +likes review_like  -likes +dislikes review_dislike
    likes       -likes          review_unlike -likes +dislikes review_dislike
    dislikes    -dislikes +likes review_like  -dislikes       review_undislike

Every "set" outcome also pulls the voter from the opposite set, even when the
read showed them absent from it. The delta is applied to whatever the row
holds at write time, so a conflicting vote that landed after the read is
still displaced. The resulting ReviewDelta carries at most one add and one
pull so it fits in a single update on the review document.
"""
from collections.abc import Collection
from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

LIKES = "likes"
DISLIKES = "dislikes"


class SelfVoteForbiddenError(Exception):
    """Raised when a review's author votes on their own review."""


class VoteAction(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"


class VoteEvent(str, Enum):
    REVIEW_LIKE = "review_like"
    REVIEW_UNLIKE = "review_unlike"
    REVIEW_DISLIKE = "review_dislike"
    REVIEW_UNDISLIKE = "review_undislike"


@dataclass(frozen=True)
class ReviewDelta:
    voter_id: UUID
    add_to_set: dict[str, frozenset[UUID]] = field(default_factory=dict)
    pull: dict[str, frozenset[UUID]] = field(default_factory=dict)


def apply_vote(
    author_id: UUID,
    likes: Collection[UUID],
    dislikes: Collection[UUID],
    voter_id: UUID,
    action: VoteAction,
) -> tuple[ReviewDelta, VoteEvent]:
    """
    Decide how *voter_id* acting with *action* changes the vote sets.

    A voter found in both sets (left behind by older writers) keeps the
    action's own set and is pulled from the other, which restores
    exclusivity and reports the "set" event.
    """
    if voter_id == author_id:
        raise SelfVoteForbiddenError("You cannot vote on your own review")

    action = VoteAction(action)
    own, other = (LIKES, DISLIKES) if action is VoteAction.LIKE else (DISLIKES, LIKES)
    in_own = voter_id in (likes if own == LIKES else dislikes)
    in_other = voter_id in (dislikes if own == LIKES else likes)
    voter = frozenset({voter_id})

    set_event = VoteEvent.REVIEW_LIKE if action is VoteAction.LIKE else VoteEvent.REVIEW_DISLIKE
    unset_event = VoteEvent.REVIEW_UNLIKE if action is VoteAction.LIKE else VoteEvent.REVIEW_UNDISLIKE

    if in_own and not in_other:
        return ReviewDelta(voter_id, pull={own: voter}), unset_event
    return ReviewDelta(voter_id, add_to_set={own: voter}, pull={other: voter}), set_event


def voted_sets(
    likes: Collection[UUID],
    dislikes: Collection[UUID],
    delta: ReviewDelta,
) -> tuple[frozenset[UUID], frozenset[UUID]]:
    """Likes/dislikes after *delta*, computed without a round-trip."""
    new_likes = (set(likes) - delta.pull.get(LIKES, frozenset())) | delta.add_to_set.get(LIKES, frozenset())
    new_dislikes = (set(dislikes) - delta.pull.get(DISLIKES, frozenset())) | delta.add_to_set.get(DISLIKES, frozenset())
    return frozenset(new_likes), frozenset(new_dislikes)


def viewer_vote(likes: Collection[UUID], dislikes: Collection[UUID], viewer_id: UUID) -> str | None:
    if viewer_id in likes:
        return VoteAction.LIKE.value
    if viewer_id in dislikes:
        return VoteAction.DISLIKE.value
    return None
