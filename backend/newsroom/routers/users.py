"""Current-user and public profile endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional

from newsroom.models.user import User
from newsroom.models.schemas import (
    UserPublic,
    UserResponse,
    UserUpdate,
    ChannelResponse,
    ArticleResponse,
)
from newsroom.middleware.auth import get_current_active_user, get_optional_user
from newsroom.services.content_service import ContentService
from newsroom.storage import Storage, get_storage

router = APIRouter()


def _get_user_or_404(storage: Storage, user_id: int) -> User:
    user = storage.get_user(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/user", response_model=UserResponse)
async def get_user(current_user: User = Depends(get_current_active_user)):
    """The authenticated user's own record."""
    return UserResponse.model_validate(current_user)


@router.get("/user/subscriptions", response_model=List[ChannelResponse])
async def get_own_subscriptions(
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Channels the authenticated user follows."""
    channels = storage.list_subscribed_channels(current_user.id)
    return ContentService.channel_list(storage, channels, current_user)


@router.get("/user/channels", response_model=List[ChannelResponse])
async def get_own_channels(
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Channels owned by the authenticated user."""
    channels = storage.list_channels(user_id=current_user.id)
    return ContentService.channel_list(storage, channels, current_user)


@router.get("/user/articles", response_model=List[ArticleResponse])
async def get_own_articles(
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Articles written by the authenticated user, drafts included."""
    articles = storage.list_articles(user_id=current_user.id, include_drafts=True)
    return ContentService.article_list(storage, articles, current_user)


@router.get("/users/{user_id}", response_model=UserPublic)
async def get_user_profile(
    user_id: int,
    storage: Storage = Depends(get_storage)
):
    """Public profile of any user."""
    return UserPublic.model_validate(_get_user_or_404(storage, user_id))


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user_profile(
    user_id: int,
    user_data: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """
    Update a profile. Users may only edit their own description and email.
    """
    _get_user_or_404(storage, user_id)

    if user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only update your own profile"
        )

    changes = user_data.model_dump(exclude_unset=True)
    if changes.get("email") is not None:
        changes["email"] = str(changes["email"])
        existing = storage.get_user_by_email(changes["email"])
        if existing is not None and existing.id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )

    if not changes:
        return UserResponse.model_validate(current_user)

    user = storage.update_user(user_id, **changes)
    return UserResponse.model_validate(user)


@router.get("/users/{user_id}/subscriptions", response_model=List[ChannelResponse])
async def get_user_subscriptions(
    user_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage)
):
    """Channels a user follows."""
    _get_user_or_404(storage, user_id)
    channels = storage.list_subscribed_channels(user_id)
    return ContentService.channel_list(storage, channels, current_user)
