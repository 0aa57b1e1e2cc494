"""
Accounts: signup, credential checks, token issuance.

Signup is where a user document is born, with every social collection
empty. From then on only friend_service and watched_service mutate them.
"""
import logging

from sqlalchemy.exc import IntegrityError

from episodic.core.security import create_access_token, hash_password, verify_password
from episodic.db.documents import DocumentStore
from episodic.db.models import User

logger = logging.getLogger(__name__)


class DuplicateUserError(Exception):
    """Raised when signup conflicts with an existing username or email."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"A user with that {field} already exists")


def _conflicting_field(exc: IntegrityError) -> str:
    message = str(exc.orig).lower()
    for field in ("username", "email"):
        if field in message:
            return field
    return "username or email"


def create_user(store: DocumentStore, username: str, email: str, password: str) -> User:
    """Insert a new user document. Username and email are stored lowercased."""
    try:
        user = store.insert(
            User(
                username=username.strip().lower(),
                email=email.strip().lower(),
                password_hash=hash_password(password),
                friends=[],
                friend_requests_sent=[],
                friend_requests_recieved=[],
                watched_history=[],
            )
        )
    except IntegrityError as exc:
        raise DuplicateUserError(_conflicting_field(exc)) from exc

    logger.info("Created user %s (%s)", user.id, user.username)
    return user


def authenticate_user(store: DocumentStore, username: str, password: str) -> User | None:
    """The active user matching these credentials, or None."""
    user = (
        store.session.query(User)
        .filter(User.username == username.strip().lower())
        .one_or_none()
    )
    if user is None or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def issue_access_token(user: User) -> str:
    return create_access_token(user.id)
