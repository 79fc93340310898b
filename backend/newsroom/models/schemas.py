"""Pydantic schemas for request/response validation."""

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, Literal
from datetime import datetime


class RequestBody(BaseModel):
    """Base for request bodies; accepts snake_case and the web client's camelCase keys."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ============================================
# User Schemas
# ============================================

class UserCreate(RequestBody):
    """Schema for user registration."""
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8)
    email: Optional[EmailStr] = None
    description: Optional[str] = Field(None, max_length=2000)

    @field_validator('username')
    @classmethod
    def username_alphanumeric(cls, v):
        """Validate username is alphanumeric with underscores."""
        if not v[0].isalpha():
            raise ValueError('Username must start with a letter')
        if not all(c.isalnum() or c == '_' for c in v):
            raise ValueError('Username can only contain letters, numbers, and underscores')
        return v


class UserLogin(BaseModel):
    """Schema for user login."""
    username: str
    password: str


class UserPublic(BaseModel):
    """Schema for another user's public profile."""
    id: int
    username: str
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UserResponse(UserPublic):
    """Schema for the authenticated user's own record."""
    email: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None


class UserUpdate(RequestBody):
    """Schema for updating user profile."""
    description: Optional[str] = Field(None, max_length=2000)
    email: Optional[EmailStr] = None


# ============================================
# Authentication Schemas
# ============================================

class Token(BaseModel):
    """Schema for access token response."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class SupabaseCallback(RequestBody):
    """Supabase access token handed over by the client after OAuth sign-in."""
    access_token: str = Field(..., min_length=1)


# ============================================
# Channel Schemas
# ============================================

class ChannelCreate(RequestBody):
    """Schema for creating a channel."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    banner_image: Optional[str] = None
    profile_image: Optional[str] = None


class ChannelUpdate(RequestBody):
    """Schema for updating a channel."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    banner_image: Optional[str] = None
    profile_image: Optional[str] = None

    @field_validator('name')
    @classmethod
    def name_not_null(cls, v):
        if v is None:
            raise ValueError('name may not be null')
        return v


class ChannelResponse(BaseModel):
    """Schema for channel response."""
    id: int
    name: str
    description: Optional[str] = None
    user_id: int
    category: Optional[str] = None
    location: Optional[str] = None
    banner_image: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: datetime
    subscriber_count: int = 0
    article_count: int = 0

    class Config:
        from_attributes = True


# ============================================
# Article Schemas
# ============================================

ArticleStatus = Literal["published", "draft"]


class ArticleCreate(RequestBody):
    """Schema for creating an article."""
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    summary: Optional[str] = None
    channel_id: int
    category: str = Field(..., min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    published: Optional[bool] = None
    status: Optional[ArticleStatus] = None

    def is_published(self) -> bool:
        """Explicit `published` wins over `status`; articles publish by default."""
        if self.published is not None:
            return self.published
        if self.status is not None:
            return self.status == "published"
        return True


class ArticleUpdate(RequestBody):
    """Schema for updating an article. Only provided fields change."""
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    content: Optional[str] = Field(None, min_length=1)
    summary: Optional[str] = None
    channel_id: Optional[int] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=100)
    published: Optional[bool] = None
    status: Optional[ArticleStatus] = None

    @field_validator('title', 'content', 'category', 'channel_id', 'published')
    @classmethod
    def required_fields_not_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} may not be null')
        return v

    def changes(self) -> dict:
        """Fields to write, with `status` folded into `published`."""
        data = self.model_dump(exclude_unset=True)
        status = data.pop("status", None)
        if status is not None and "published" not in data:
            data["published"] = status == "published"
        return data


class ArticleResponse(BaseModel):
    """Schema for article response."""
    id: int
    title: str
    content: str
    summary: Optional[str] = None
    channel_id: int
    user_id: int
    category: str
    location: Optional[str] = None
    published: bool
    status: ArticleStatus
    view_count: int
    created_at: datetime
    last_edited: Optional[datetime] = None

    channel_name: Optional[str] = None
    author_username: Optional[str] = None
    likes: int = 0
    dislikes: int = 0
    comment_count: int = 0
    user_reaction: Optional[bool] = None

    class Config:
        from_attributes = True


# ============================================
# Comment Schemas
# ============================================

class CommentCreate(RequestBody):
    """Schema for posting a comment."""
    content: str = Field(..., min_length=1, max_length=5000)
    parent_id: Optional[int] = None


class CommentResponse(BaseModel):
    """Schema for comment response."""
    id: int
    content: str
    article_id: int
    user_id: int
    parent_id: Optional[int] = None
    created_at: datetime
    username: Optional[str] = None

    class Config:
        from_attributes = True


# ============================================
# Reaction Schemas
# ============================================

class ReactionCreate(RequestBody):
    """Schema for liking or disliking an article."""
    is_like: bool


class ReactionSummary(BaseModel):
    """Reaction totals for an article plus the caller's own vote."""
    article_id: int
    likes: int
    dislikes: int
    user_reaction: Optional[bool] = None


# ============================================
# Subscription Schemas
# ============================================

class SubscriptionResponse(BaseModel):
    """Schema for subscription response."""
    id: int
    channel_id: int
    user_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class SubscriptionStatus(BaseModel):
    """Whether the caller follows a channel."""
    channel_id: int
    subscribed: bool
    subscriber_count: int


# ============================================
# Note Schemas
# ============================================

class NoteCreate(RequestBody):
    """Schema for creating a private note."""
    content: str = Field(..., min_length=1)
    article_id: Optional[int] = None
    channel_id: Optional[int] = None


class NoteResponse(BaseModel):
    """Schema for note response."""
    id: int
    content: str
    user_id: int
    article_id: Optional[int] = None
    channel_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


# ============================================
# Generic Response Schemas
# ============================================

class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
    detail: Optional[str] = None
