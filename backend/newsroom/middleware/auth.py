"""Authentication dependencies for protected routes."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from newsroom.models.user import User
from newsroom.services.auth_service import AuthService
from newsroom.storage import Storage, get_storage
from newsroom.utils.security import decode_access_token

# HTTP Bearer token scheme; missing credentials are reported by get_current_user
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """Return the raw bearer token or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")
    return credentials.credentials


async def get_current_user(
    token: str = Depends(get_bearer_token),
    storage: Storage = Depends(get_storage)
) -> User:
    """
    Dependency to get the current authenticated user.

    Usage in routes:
        @router.get("/protected")
        async def protected_route(current_user: User = Depends(get_current_user)):
            return {"user": current_user.username}

    Raises:
        HTTPException: 401 if the token is invalid or its session is gone
    """
    payload = decode_access_token(token)
    if not payload:
        raise _unauthorized("Invalid authentication credentials")

    user, error = AuthService.validate_session(storage, token)
    if error or not user:
        raise _unauthorized(error or "Authentication failed")

    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Dependency to get the current active user.

    Raises:
        HTTPException: 403 if the user is inactive
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )
    return current_user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    storage: Storage = Depends(get_storage)
) -> Optional[User]:
    """
    Dependency to optionally get the current user.

    Returns None if no valid authentication is provided. Used by routes
    that work with or without authentication.
    """
    if credentials is None:
        return None

    token = credentials.credentials
    if not decode_access_token(token):
        return None

    user, _ = AuthService.validate_session(storage, token)
    return user
