"""Authentication endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status, Request

from newsroom.config import settings
from newsroom.models.schemas import (
    UserCreate,
    UserLogin,
    UserResponse,
    Token,
    SupabaseCallback,
    MessageResponse
)
from newsroom.models.user import User
from newsroom.services.auth_service import AuthService
from newsroom.storage import Storage, get_storage
from newsroom.middleware.auth import get_current_active_user, get_bearer_token

router = APIRouter()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _issue_token(storage: Storage, user: User, request: Request) -> Token:
    """Create a session for user and wrap its token in the response."""
    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")

    access_token = AuthService.create_user_session(
        storage=storage,
        user=user,
        ip_address=ip_address,
        user_agent=user_agent
    )

    return Token(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user)
    )


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    request: Request,
    storage: Storage = Depends(get_storage)
):
    """Create an account and sign it in. Username and email (when given) must be unused."""
    user, error = AuthService.register_user(storage, user_data)

    if error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error
        )

    return _issue_token(storage, user, request)


@router.post("/login", response_model=Token)
async def login(
    login_data: UserLogin,
    request: Request,
    storage: Storage = Depends(get_storage)
):
    """Sign in with a username or email plus password."""
    user, error = AuthService.authenticate_user(storage, login_data)

    if error:
        raise _unauthorized(error)

    return _issue_token(storage, user, request)


@router.post("/supabase-callback", response_model=Token)
async def supabase_callback(
    payload: SupabaseCallback,
    request: Request,
    storage: Storage = Depends(get_storage)
):
    """
    Exchange a Supabase access token for a local session.

    The first sign-in of a Supabase identity creates a local user whose
    username is derived from the email address.
    """
    if not settings.SUPABASE_JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Supabase authentication is not configured"
        )

    user, error = AuthService.supabase_login(storage, payload.access_token)

    if error:
        raise _unauthorized(error)

    return _issue_token(storage, user, request)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: str = Depends(get_bearer_token),
    storage: Storage = Depends(get_storage)
):
    """Delete the session behind the bearer token."""
    success = AuthService.logout_user(storage, token)

    if not success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found"
        )

    return MessageResponse(message="Successfully logged out")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
):
    """Profile of the signed-in user, email included."""
    return UserResponse.model_validate(current_user)


@router.get("/verify", response_model=MessageResponse)
async def verify_token(
    current_user: User = Depends(get_current_active_user)
):
    """Succeeds while the bearer token maps to a live session."""
    return MessageResponse(
        message="Token is valid",
        detail=f"Authenticated as {current_user.username}"
    )
