"""
Bearer-token authentication for protected routes.

    @router.post("/friends/request/{target_id}")
    def send(current_user: User = Depends(get_current_user)): ...

The token's subject is the user's id; the user document is loaded through
the same DocumentStore the route's services use.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from episodic.core.security import decode_access_token
from episodic.db.documents import DocumentStore
from episodic.db.models import User
from episodic.deps.store import get_store

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": {"code": code, "message": message}},
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    token: str = Depends(oauth2_scheme),
    store: DocumentStore = Depends(get_store),
) -> User:
    """Active user named by the JWT. 401 for bad tokens, unknown or deactivated users."""
    user_id = decode_access_token(token)
    user = store.find_one(User, user_id) if user_id is not None else None
    if user is None:
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired token")
    if not user.is_active:
        raise _unauthorized("ACCOUNT_DEACTIVATED", "Account is deactivated")
    return user
