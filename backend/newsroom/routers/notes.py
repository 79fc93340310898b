"""Private note endpoints."""

from fastapi import APIRouter, Depends, status
from typing import List

from newsroom.models.user import User
from newsroom.models.schemas import NoteCreate, NoteResponse
from newsroom.middleware.auth import get_current_active_user
from newsroom.routers.articles import get_visible_article
from newsroom.routers.channels import get_channel_or_404
from newsroom.storage import Storage, get_storage

router = APIRouter()


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    note_data: NoteCreate,
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """Keep a private note, optionally attached to an article or channel."""
    if note_data.article_id is not None:
        get_visible_article(storage, note_data.article_id, current_user)
    if note_data.channel_id is not None:
        get_channel_or_404(storage, note_data.channel_id)

    note = storage.create_note(
        user_id=current_user.id,
        content=note_data.content,
        article_id=note_data.article_id,
        channel_id=note_data.channel_id
    )
    return NoteResponse.model_validate(note)


@router.get("", response_model=List[NoteResponse])
async def list_notes(
    current_user: User = Depends(get_current_active_user),
    storage: Storage = Depends(get_storage)
):
    """The caller's own notes."""
    return [NoteResponse.model_validate(n) for n in storage.list_notes(current_user.id)]
