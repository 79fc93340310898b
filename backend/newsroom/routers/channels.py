"""Channel and subscription endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Response, status
from typing import List, Literal, Optional

from newsroom.models import Channel, User
from newsroom.models.schemas import (
    ChannelCreate,
    ChannelUpdate,
    ChannelResponse,
    ArticleResponse,
    SubscriptionResponse,
    SubscriptionStatus,
    MessageResponse,
)
from newsroom.middleware.auth import get_current_active_user, get_optional_user
from newsroom.services.content_service import ContentService
from newsroom.storage import Storage, DuplicateRecord, get_storage

router = APIRouter()


def get_channel_or_404(storage: Storage, channel_id: int) -> Channel:
    channel = storage.get_channel(channel_id)
    if channel is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Channel not found"
        )
    return channel


def _require_owner(channel: Channel, user: User, action: str):
    if channel.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only the channel owner can {action} this channel"
        )


@router.post("", response_model=ChannelResponse, status_code=status.HTTP_201_CREATED)
async def create_channel(
    channel_data: ChannelCreate,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Create a channel owned by the caller."""
    fields = channel_data.model_dump(exclude={"name"})
    channel = storage.create_channel(current_user.id, channel_data.name, **fields)
    return ContentService.channel_response(storage, channel, current_user)


@router.get("", response_model=List[ChannelResponse])
async def list_channels(
    order_by: Literal["created_at", "subscriber_count", "article_count"] = "created_at",
    user_id: Optional[int] = None,
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage)
):
    """
    List channels.

    Args:
        order_by: created_at (newest first), subscriber_count or article_count (largest first)
        user_id: Only channels owned by this user
    """
    channels = ContentService.channel_list(storage, storage.list_channels(user_id=user_id), current_user)

    if order_by == "created_at":
        channels.sort(key=lambda c: (c.created_at, c.id), reverse=True)
    else:
        channels.sort(key=lambda c: (getattr(c, order_by), c.id), reverse=True)

    return channels


@router.get("/{channel_id}", response_model=ChannelResponse)
async def get_channel(
    channel_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage)
):
    """Get a channel with its subscriber and article counts."""
    channel = get_channel_or_404(storage, channel_id)
    return ContentService.channel_response(storage, channel, current_user)


@router.patch("/{channel_id}", response_model=ChannelResponse)
async def update_channel(
    channel_id: int,
    channel_data: ChannelUpdate,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Update a channel. Only provided fields change; owner only."""
    channel = get_channel_or_404(storage, channel_id)
    _require_owner(channel, current_user, "update")

    changes = channel_data.model_dump(exclude_unset=True)
    if changes:
        channel = storage.update_channel(channel_id, **changes)

    return ContentService.channel_response(storage, channel, current_user)


@router.delete("/{channel_id}", response_model=MessageResponse)
async def delete_channel(
    channel_id: int,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Delete a channel with its articles and subscriptions; owner only."""
    channel = get_channel_or_404(storage, channel_id)
    _require_owner(channel, current_user, "delete")

    storage.delete_channel(channel_id)

    return MessageResponse(message="Channel deleted successfully")


@router.get("/{channel_id}/articles", response_model=List[ArticleResponse])
async def list_channel_articles(
    channel_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage)
):
    """Published articles of a channel, newest first. The owner also sees drafts."""
    channel = get_channel_or_404(storage, channel_id)
    is_owner = current_user is not None and current_user.id == channel.user_id

    articles = storage.list_articles(channel_id=channel_id, include_drafts=is_owner)
    return ContentService.article_list(storage, articles, current_user)


@router.post("/{channel_id}/subscribe", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
async def subscribe(
    channel_id: int,
    response: Response,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """
    Follow a channel.

    Returns 201 with the new subscription, or 200 with the existing one
    when the caller already follows the channel.
    """
    get_channel_or_404(storage, channel_id)

    existing = storage.get_subscription(channel_id, current_user.id)
    if existing is None:
        try:
            return SubscriptionResponse.model_validate(storage.create_subscription(channel_id, current_user.id))
        except DuplicateRecord:
            # Lost a race with a concurrent subscribe
            existing = storage.get_subscription(channel_id, current_user.id)

    response.status_code = status.HTTP_200_OK
    return SubscriptionResponse.model_validate(existing)


@router.delete("/{channel_id}/subscribe", response_model=SubscriptionStatus)
async def unsubscribe(
    channel_id: int,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Stop following a channel. Succeeds when the caller was not subscribed."""
    get_channel_or_404(storage, channel_id)
    storage.delete_subscription(channel_id, current_user.id)

    return SubscriptionStatus(
        channel_id=channel_id,
        subscribed=False,
        subscriber_count=storage.count_subscribers(channel_id)
    )


@router.get("/{channel_id}/subscription", response_model=SubscriptionStatus)
async def get_subscription_status(
    channel_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage)
):
    """Whether the caller follows the channel; always false for anonymous callers."""
    get_channel_or_404(storage, channel_id)

    subscribed = (
        current_user is not None
        and storage.get_subscription(channel_id, current_user.id) is not None
    )

    return SubscriptionStatus(
        channel_id=channel_id,
        subscribed=subscribed,
        subscriber_count=storage.count_subscribers(channel_id)
    )
