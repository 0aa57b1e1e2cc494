"""
Auth API (/auth)
────────────────
Endpoints:
  POST /auth/signup   Create account, return the new user document (201)
  POST /auth/login    Password login, return a bearer JWT
  GET  /auth/me       The current user's document, social fields included
"""
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from episodic.db.documents import DocumentStore
from episodic.db.models import User
from episodic.deps.auth import get_current_user
from episodic.deps.store import get_activity_recorder, get_store
from episodic.schemas.auth import SignupRequest, TokenResponse, UserResponse
from episodic.services.activity_service import ActivityRecorder
from episodic.services.auth_service import (
    DuplicateUserError,
    authenticate_user,
    create_user,
    issue_access_token,
)

router = APIRouter()


def _error(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    store: DocumentStore = Depends(get_store),
    recorder: ActivityRecorder = Depends(get_activity_recorder),
) -> UserResponse:
    """New account with empty friend sets and watch history. 409 on a taken name or email."""
    try:
        user = create_user(store, payload.username, payload.email, payload.password)
    except DuplicateUserError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=_error("DUPLICATE_USER", str(exc)),
        ) from exc

    recorder.record(user.id, "account_creation")
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
def login(
    form: OAuth2PasswordRequestForm = Depends(),
    store: DocumentStore = Depends(get_store),
) -> TokenResponse:
    # OAuth2 password form, so the /docs Authorize button works
    user = authenticate_user(store, form.username, form.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_error("INVALID_CREDENTIALS", "Incorrect username or password"),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return TokenResponse(access_token=issue_access_token(user))


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
