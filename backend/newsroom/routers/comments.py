"""Comment moderation endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from newsroom.models.user import User
from newsroom.models.schemas import MessageResponse
from newsroom.middleware.auth import get_current_active_user
from newsroom.storage import Storage, get_storage

router = APIRouter()


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """
    Delete a comment and its replies.

    Allowed for the comment's author and for the author of the article.
    """
    comment = storage.get_comment(comment_id)
    if comment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )

    article = storage.get_article(comment.article_id)
    article_author_id = article.user_id if article else None

    if current_user.id not in (comment.user_id, article_author_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own comments"
        )

    storage.delete_comment(comment_id)

    return MessageResponse(message="Comment deleted successfully")
