"""Article, comment and reaction endpoints."""

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List, Optional

from newsroom.models import Article, User
from newsroom.models.schemas import (
    ArticleCreate,
    ArticleUpdate,
    ArticleResponse,
    CommentCreate,
    CommentResponse,
    ReactionCreate,
    ReactionSummary,
    MessageResponse,
)
from newsroom.middleware.auth import get_current_active_user, get_optional_user
from newsroom.routers.channels import get_channel_or_404
from newsroom.services.content_service import ContentService
from newsroom.storage import Storage, get_storage

router = APIRouter()


def get_visible_article(storage: Storage, article_id: int, viewer: Optional[User]) -> Article:
    """Fetch an article; drafts are reported missing to everyone but the author."""
    article = storage.get_article(article_id)
    if article is None or (not article.published and (viewer is None or viewer.id != article.user_id)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Article not found"
        )
    return article


def _require_author(article: Article, user: User, action: str):
    if article.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only the author can {action} this article"
        )


def _require_channel_owner(storage: Storage, channel_id: int, user: User):
    channel = get_channel_or_404(storage, channel_id)
    if channel.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only publish to your own channels"
        )


# ============================================
# Articles
# ============================================

@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    article_data: ArticleCreate,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """
    Write an article into one of the caller's channels.

    The article is published unless `published` is false or `status` is "draft".
    """
    _require_channel_owner(storage, article_data.channel_id, current_user)

    article = storage.create_article(
        user_id=current_user.id,
        channel_id=article_data.channel_id,
        title=article_data.title,
        content=article_data.content,
        category=article_data.category,
        summary=article_data.summary,
        location=article_data.location,
        published=article_data.is_published(),
    )

    return ContentService.article_response(storage, article, current_user)


@router.get("", response_model=List[ArticleResponse])
async def list_articles(
    channel_id: Optional[int] = None,
    category: Optional[str] = None,
    location: Optional[str] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage)
):
    """Published articles, newest first."""
    articles = storage.list_articles(
        channel_id=channel_id,
        category=category,
        location=location,
        limit=limit,
        offset=offset,
    )
    return ContentService.article_list(storage, articles, current_user)


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: int,
    count_view: bool = Query(True, description="False re-reads the article without counting a view"),
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage)
):
    """Read an article. Views by anyone but the author are counted."""
    article = get_visible_article(storage, article_id, current_user)

    if count_view and (current_user is None or current_user.id != article.user_id):
        storage.increment_view_count(article_id)
        article = storage.get_article(article_id)

    return ContentService.article_response(storage, article, current_user)


@router.patch("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: int,
    article_data: ArticleUpdate,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Edit an article; author only. Moving it requires owning the target channel."""
    article = get_visible_article(storage, article_id, current_user)
    _require_author(article, current_user, "edit")

    changes = article_data.changes()
    if "channel_id" in changes and changes["channel_id"] != article.channel_id:
        _require_channel_owner(storage, changes["channel_id"], current_user)

    if changes:
        changes["last_edited"] = datetime.utcnow()
        article = storage.update_article(article_id, **changes)

    return ContentService.article_response(storage, article, current_user)


@router.delete("/{article_id}", response_model=MessageResponse)
async def delete_article(
    article_id: int,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Delete an article with its comments and reactions; author only."""
    article = get_visible_article(storage, article_id, current_user)
    _require_author(article, current_user, "delete")

    storage.delete_article(article_id)

    return MessageResponse(message="Article deleted successfully")


@router.post("/{article_id}/toggle-status", response_model=ArticleResponse)
async def toggle_article_status(
    article_id: int,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Switch an article between published and draft; author only."""
    article = get_visible_article(storage, article_id, current_user)
    _require_author(article, current_user, "change the status of")

    article = storage.update_article(
        article_id,
        published=not article.published,
        last_edited=datetime.utcnow()
    )

    return ContentService.article_response(storage, article, current_user)


# ============================================
# Comments
# ============================================

@router.get("/{article_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    article_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage)
):
    """Comments on an article, oldest first, with author usernames."""
    get_visible_article(storage, article_id, current_user)
    return ContentService.comment_list(storage, storage.list_comments(article_id))


@router.post("/{article_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    article_id: int,
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Comment on an article, optionally replying to an existing comment on it."""
    get_visible_article(storage, article_id, current_user)

    if comment_data.parent_id is not None:
        parent = storage.get_comment(comment_data.parent_id)
        if parent is None or parent.article_id != article_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Parent comment does not belong to this article"
            )

    comment = storage.create_comment(
        article_id=article_id,
        user_id=current_user.id,
        content=comment_data.content,
        parent_id=comment_data.parent_id
    )

    return ContentService.comment_list(storage, [comment])[0]


# ============================================
# Reactions
# ============================================

@router.get("/{article_id}/reactions", response_model=ReactionSummary)
async def get_reactions(
    article_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    storage: Storage = Depends(get_storage)
):
    """Like and dislike totals plus the caller's own vote."""
    get_visible_article(storage, article_id, current_user)
    return ContentService.reaction_summary(storage, article_id, current_user)


@router.post("/{article_id}/reactions", response_model=ReactionSummary)
async def react(
    article_id: int,
    reaction_data: ReactionCreate,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Like or dislike an article, replacing any earlier vote by the caller."""
    get_visible_article(storage, article_id, current_user)
    storage.set_reaction(article_id, current_user.id, reaction_data.is_like)
    return ContentService.reaction_summary(storage, article_id, current_user)


@router.delete("/{article_id}/reactions", response_model=ReactionSummary)
async def remove_reaction(
    article_id: int,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Withdraw the caller's vote."""
    get_visible_article(storage, article_id, current_user)
    storage.delete_reaction(article_id, current_user.id)
    return ContentService.reaction_summary(storage, article_id, current_user)
