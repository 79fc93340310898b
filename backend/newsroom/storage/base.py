"""Storage interface shared by every persistence backend."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from newsroom.models import (
    User,
    UserSession,
    Channel,
    Subscription,
    Article,
    Comment,
    Reaction,
    Note,
)


class StorageError(Exception):
    """Base class for storage failures."""


class RecordNotFound(StorageError):
    """Raised when updating or deleting a record that does not exist."""

    def __init__(self, kind: str, record_id):
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class DuplicateRecord(StorageError):
    """Raised when a write would violate a uniqueness rule."""


# Columns callers may change through the update_* operations
USER_UPDATABLE = ("username", "email", "description", "hashed_password", "supabase_uid", "is_active", "last_login")
CHANNEL_UPDATABLE = ("name", "description", "category", "location", "banner_image", "profile_image")
ARTICLE_UPDATABLE = ("title", "content", "summary", "channel_id", "category", "location", "published", "last_edited")


class Storage(ABC):
    """
    CRUD operations for the publishing platform.

    Implementations return model instances (attached to a session for SQL
    backends, plain transient instances for the memory backend). Lookups
    return None when nothing matches; updates and deletes of missing ids
    raise RecordNotFound.
    """

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    def get_user_by_supabase_uid(self, supabase_uid: str) -> Optional[User]:
        ...

    @abstractmethod
    def create_user(
        self,
        username: str,
        hashed_password: Optional[str] = None,
        email: Optional[str] = None,
        description: Optional[str] = None,
        supabase_uid: Optional[str] = None,
    ) -> User:
        ...

    @abstractmethod
    def update_user(self, user_id: int, **changes) -> User:
        ...

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    @abstractmethod
    def create_session(
        self,
        user_id: int,
        session_token: str,
        expires_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> UserSession:
        ...

    @abstractmethod
    def get_session(self, session_token: str) -> Optional[UserSession]:
        ...

    @abstractmethod
    def touch_session(self, session_token: str) -> None:
        """Record activity on a session."""

    @abstractmethod
    def delete_session(self, session_token: str) -> bool:
        """Delete a session; returns False when it did not exist."""

    @abstractmethod
    def cleanup_expired_sessions(self, now: Optional[datetime] = None) -> int:
        """Delete expired sessions and return how many were removed."""

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    @abstractmethod
    def create_channel(self, user_id: int, name: str, **fields) -> Channel:
        ...

    @abstractmethod
    def get_channel(self, channel_id: int) -> Optional[Channel]:
        ...

    @abstractmethod
    def list_channels(self, user_id: Optional[int] = None) -> List[Channel]:
        """Channels in creation order, optionally only those owned by user_id."""

    @abstractmethod
    def update_channel(self, channel_id: int, **changes) -> Channel:
        ...

    @abstractmethod
    def delete_channel(self, channel_id: int) -> None:
        """Delete a channel together with its articles and subscriptions."""

    @abstractmethod
    def count_subscribers(self, channel_id: int) -> int:
        ...

    @abstractmethod
    def count_articles(self, channel_id: int, include_drafts: bool = False) -> int:
        ...

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    @abstractmethod
    def create_article(
        self,
        user_id: int,
        channel_id: int,
        title: str,
        content: str,
        category: str,
        **fields
    ) -> Article:
        ...

    @abstractmethod
    def get_article(self, article_id: int) -> Optional[Article]:
        ...

    @abstractmethod
    def list_articles(
        self,
        channel_id: Optional[int] = None,
        user_id: Optional[int] = None,
        category: Optional[str] = None,
        location: Optional[str] = None,
        include_drafts: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Article]:
        """Articles newest first."""

    @abstractmethod
    def update_article(self, article_id: int, **changes) -> Article:
        ...

    @abstractmethod
    def delete_article(self, article_id: int) -> None:
        """Delete an article together with its comments and reactions."""

    @abstractmethod
    def increment_view_count(self, article_id: int) -> int:
        """Add one view and return the new count."""

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    @abstractmethod
    def create_comment(
        self,
        article_id: int,
        user_id: int,
        content: str,
        parent_id: Optional[int] = None,
    ) -> Comment:
        ...

    @abstractmethod
    def get_comment(self, comment_id: int) -> Optional[Comment]:
        ...

    @abstractmethod
    def list_comments(self, article_id: int) -> List[Comment]:
        """Comments on an article, oldest first."""

    @abstractmethod
    def count_comments(self, article_id: int) -> int:
        ...

    @abstractmethod
    def delete_comment(self, comment_id: int) -> None:
        """Delete a comment and every reply beneath it."""

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    @abstractmethod
    def get_reaction(self, article_id: int, user_id: int) -> Optional[Reaction]:
        ...

    @abstractmethod
    def set_reaction(self, article_id: int, user_id: int, is_like: bool) -> Reaction:
        """Insert the user's reaction or replace the existing one."""

    @abstractmethod
    def delete_reaction(self, article_id: int, user_id: int) -> bool:
        ...

    @abstractmethod
    def count_reactions(self, article_id: int) -> Tuple[int, int]:
        """Return (likes, dislikes)."""

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    @abstractmethod
    def get_subscription(self, channel_id: int, user_id: int) -> Optional[Subscription]:
        ...

    @abstractmethod
    def create_subscription(self, channel_id: int, user_id: int) -> Subscription:
        """Raises DuplicateRecord when the user already follows the channel."""

    @abstractmethod
    def delete_subscription(self, channel_id: int, user_id: int) -> bool:
        ...

    @abstractmethod
    def list_subscribed_channels(self, user_id: int) -> List[Channel]:
        ...

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    @abstractmethod
    def create_note(
        self,
        user_id: int,
        content: str,
        article_id: Optional[int] = None,
        channel_id: Optional[int] = None,
    ) -> Note:
        ...

    @abstractmethod
    def list_notes(self, user_id: int) -> List[Note]:
        ...

    # ------------------------------------------------------------------
    # Taxonomy
    # ------------------------------------------------------------------

    @abstractmethod
    def list_categories(self) -> List[str]:
        """Distinct non-empty categories used by channels and articles, sorted."""

    @abstractmethod
    def list_locations(self) -> List[str]:
        """Distinct non-empty locations used by channels and articles, sorted."""

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True when the backing store answers."""
        return True


def validate_changes(changes: dict, allowed: Tuple[str, ...], kind: str) -> dict:
    """Reject attempts to write columns outside the allowed set."""
    unknown = set(changes) - set(allowed)
    if unknown:
        raise ValueError(f"Cannot update {kind} fields: {', '.join(sorted(unknown))}")
    return changes
