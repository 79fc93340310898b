"""In-process storage backed by dictionaries."""

import itertools
import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple

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
from newsroom.storage.base import (
    Storage,
    RecordNotFound,
    DuplicateRecord,
    USER_UPDATABLE,
    CHANNEL_UPDATABLE,
    ARTICLE_UPDATABLE,
    validate_changes,
)


def _newest_first(article: Article):
    return (article.created_at, article.id)


class MemoryStorage(Storage):
    """
    Storage kept in process memory.

    Records are the same mapped model classes the SQL backend returns, held
    as transient instances. Data disappears with the process; useful for
    development and tests. A single lock serialises all access.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._ids: Dict[str, itertools.count] = {}
        self.users: Dict[int, User] = {}
        self.sessions: Dict[str, UserSession] = {}
        self.channels: Dict[int, Channel] = {}
        self.articles: Dict[int, Article] = {}
        self.comments: Dict[int, Comment] = {}
        self.reactions: Dict[int, Reaction] = {}
        self.subscriptions: Dict[int, Subscription] = {}
        self.notes: Dict[int, Note] = {}

    def _next_id(self, table: str) -> int:
        if table not in self._ids:
            self._ids[table] = itertools.count(1)
        return next(self._ids[table])

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            return next((u for u in self.users.values() if u.username == username), None)

    def get_user_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        with self._lock:
            return next((u for u in self.users.values() if u.email == email), None)

    def get_user_by_supabase_uid(self, supabase_uid: str) -> Optional[User]:
        if not supabase_uid:
            return None
        with self._lock:
            return next((u for u in self.users.values() if u.supabase_uid == supabase_uid), None)

    def _check_user_unique(self, user_id: Optional[int], **values):
        for field in ("username", "email", "supabase_uid"):
            value = values.get(field)
            if value is None:
                continue
            for other in self.users.values():
                if other.id != user_id and getattr(other, field) == value:
                    raise DuplicateRecord(f"User with this {field} already exists")

    def create_user(self, username, hashed_password=None, email=None, description=None, supabase_uid=None) -> User:
        with self._lock:
            self._check_user_unique(None, username=username, email=email, supabase_uid=supabase_uid)
            user = User(
                id=self._next_id("users"),
                username=username,
                hashed_password=hashed_password,
                email=email,
                description=description,
                supabase_uid=supabase_uid,
                is_active=True,
                created_at=datetime.utcnow(),
                last_login=None,
            )
            self.users[user.id] = user
            return user

    def update_user(self, user_id: int, **changes) -> User:
        validate_changes(changes, USER_UPDATABLE, "user")
        with self._lock:
            user = self.users.get(user_id)
            if user is None:
                raise RecordNotFound("User", user_id)
            self._check_user_unique(user_id, **changes)
            for key, value in changes.items():
                setattr(user, key, value)
            return user

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, user_id, session_token, expires_at, ip_address=None, user_agent=None) -> UserSession:
        with self._lock:
            if session_token in self.sessions:
                raise DuplicateRecord("Session token already exists")
            now = datetime.utcnow()
            session = UserSession(
                id=self._next_id("user_sessions"),
                user_id=user_id,
                session_token=session_token,
                ip_address=ip_address,
                user_agent=user_agent,
                created_at=now,
                expires_at=expires_at,
                last_activity=now,
            )
            self.sessions[session_token] = session
            return session

    def get_session(self, session_token: str) -> Optional[UserSession]:
        return self.sessions.get(session_token)

    def touch_session(self, session_token: str) -> None:
        with self._lock:
            session = self.sessions.get(session_token)
            if session is not None:
                session.last_activity = datetime.utcnow()

    def delete_session(self, session_token: str) -> bool:
        with self._lock:
            return self.sessions.pop(session_token, None) is not None

    def cleanup_expired_sessions(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        with self._lock:
            expired = [token for token, s in self.sessions.items() if s.expires_at < now]
            for token in expired:
                del self.sessions[token]
            return len(expired)

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    def create_channel(self, user_id: int, name: str, **fields) -> Channel:
        validate_changes(fields, CHANNEL_UPDATABLE, "channel")
        with self._lock:
            channel = Channel(
                id=self._next_id("channels"),
                user_id=user_id,
                name=name,
                description=fields.get("description"),
                category=fields.get("category"),
                location=fields.get("location"),
                banner_image=fields.get("banner_image"),
                profile_image=fields.get("profile_image"),
                created_at=datetime.utcnow(),
            )
            self.channels[channel.id] = channel
            return channel

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        return self.channels.get(channel_id)

    def list_channels(self, user_id: Optional[int] = None) -> List[Channel]:
        with self._lock:
            channels = sorted(self.channels.values(), key=lambda c: c.id)
        if user_id is not None:
            channels = [c for c in channels if c.user_id == user_id]
        return channels

    def update_channel(self, channel_id: int, **changes) -> Channel:
        validate_changes(changes, CHANNEL_UPDATABLE, "channel")
        with self._lock:
            channel = self.channels.get(channel_id)
            if channel is None:
                raise RecordNotFound("Channel", channel_id)
            for key, value in changes.items():
                setattr(channel, key, value)
            return channel

    def delete_channel(self, channel_id: int) -> None:
        with self._lock:
            if channel_id not in self.channels:
                raise RecordNotFound("Channel", channel_id)
            for article_id in [a.id for a in self.articles.values() if a.channel_id == channel_id]:
                self._drop_article(article_id)
            for sub_id in [s.id for s in self.subscriptions.values() if s.channel_id == channel_id]:
                del self.subscriptions[sub_id]
            for note in self.notes.values():
                if note.channel_id == channel_id:
                    note.channel_id = None
            del self.channels[channel_id]

    def count_subscribers(self, channel_id: int) -> int:
        with self._lock:
            return sum(1 for s in self.subscriptions.values() if s.channel_id == channel_id)

    def count_articles(self, channel_id: int, include_drafts: bool = False) -> int:
        with self._lock:
            return sum(
                1 for a in self.articles.values()
                if a.channel_id == channel_id and (include_drafts or a.published)
            )

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    def create_article(self, user_id, channel_id, title, content, category, **fields) -> Article:
        validate_changes(fields, ARTICLE_UPDATABLE, "article")
        with self._lock:
            if channel_id not in self.channels:
                raise RecordNotFound("Channel", channel_id)
            article = Article(
                id=self._next_id("articles"),
                user_id=user_id,
                channel_id=channel_id,
                title=title,
                content=content,
                category=category,
                summary=fields.get("summary"),
                location=fields.get("location"),
                published=fields.get("published", True),
                view_count=0,
                created_at=datetime.utcnow(),
                last_edited=None,
            )
            self.articles[article.id] = article
            return article

    def get_article(self, article_id: int) -> Optional[Article]:
        return self.articles.get(article_id)

    def list_articles(
        self,
        channel_id=None,
        user_id=None,
        category=None,
        location=None,
        include_drafts=False,
        limit=None,
        offset=0,
    ) -> List[Article]:
        with self._lock:
            articles = list(self.articles.values())

        if channel_id is not None:
            articles = [a for a in articles if a.channel_id == channel_id]
        if user_id is not None:
            articles = [a for a in articles if a.user_id == user_id]
        if category:
            articles = [a for a in articles if a.category == category]
        if location:
            articles = [a for a in articles if a.location == location]
        if not include_drafts:
            articles = [a for a in articles if a.published]

        articles.sort(key=_newest_first, reverse=True)
        if limit is None:
            return articles[offset:]
        return articles[offset:offset + limit]

    def update_article(self, article_id: int, **changes) -> Article:
        validate_changes(changes, ARTICLE_UPDATABLE, "article")
        with self._lock:
            article = self.articles.get(article_id)
            if article is None:
                raise RecordNotFound("Article", article_id)
            if "channel_id" in changes and changes["channel_id"] not in self.channels:
                raise RecordNotFound("Channel", changes["channel_id"])
            for key, value in changes.items():
                setattr(article, key, value)
            return article

    def _drop_article(self, article_id: int):
        for comment_id in [c.id for c in self.comments.values() if c.article_id == article_id]:
            del self.comments[comment_id]
        for reaction_id in [r.id for r in self.reactions.values() if r.article_id == article_id]:
            del self.reactions[reaction_id]
        for note in self.notes.values():
            if note.article_id == article_id:
                note.article_id = None
        del self.articles[article_id]

    def delete_article(self, article_id: int) -> None:
        with self._lock:
            if article_id not in self.articles:
                raise RecordNotFound("Article", article_id)
            self._drop_article(article_id)

    def increment_view_count(self, article_id: int) -> int:
        with self._lock:
            article = self.articles.get(article_id)
            if article is None:
                raise RecordNotFound("Article", article_id)
            article.view_count = (article.view_count or 0) + 1
            return article.view_count

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def create_comment(self, article_id, user_id, content, parent_id=None) -> Comment:
        with self._lock:
            if article_id not in self.articles:
                raise RecordNotFound("Article", article_id)
            comment = Comment(
                id=self._next_id("comments"),
                article_id=article_id,
                user_id=user_id,
                content=content,
                parent_id=parent_id,
                created_at=datetime.utcnow(),
            )
            self.comments[comment.id] = comment
            return comment

    def get_comment(self, comment_id: int) -> Optional[Comment]:
        return self.comments.get(comment_id)

    def list_comments(self, article_id: int) -> List[Comment]:
        with self._lock:
            comments = [c for c in self.comments.values() if c.article_id == article_id]
        return sorted(comments, key=lambda c: (c.created_at, c.id))

    def count_comments(self, article_id: int) -> int:
        with self._lock:
            return sum(1 for c in self.comments.values() if c.article_id == article_id)

    def delete_comment(self, comment_id: int) -> None:
        with self._lock:
            if comment_id not in self.comments:
                raise RecordNotFound("Comment", comment_id)
            pending = [comment_id]
            while pending:
                current = pending.pop()
                pending.extend(c.id for c in self.comments.values() if c.parent_id == current)
                self.comments.pop(current, None)

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    def get_reaction(self, article_id: int, user_id: int) -> Optional[Reaction]:
        with self._lock:
            return next(
                (r for r in self.reactions.values() if r.article_id == article_id and r.user_id == user_id),
                None
            )

    def set_reaction(self, article_id: int, user_id: int, is_like: bool) -> Reaction:
        with self._lock:
            if article_id not in self.articles:
                raise RecordNotFound("Article", article_id)
            reaction = self.get_reaction(article_id, user_id)
            if reaction is None:
                reaction = Reaction(id=self._next_id("reactions"), article_id=article_id, user_id=user_id)
                self.reactions[reaction.id] = reaction
            reaction.is_like = is_like
            return reaction

    def delete_reaction(self, article_id: int, user_id: int) -> bool:
        with self._lock:
            reaction = self.get_reaction(article_id, user_id)
            if reaction is None:
                return False
            del self.reactions[reaction.id]
            return True

    def count_reactions(self, article_id: int) -> Tuple[int, int]:
        with self._lock:
            votes = [r.is_like for r in self.reactions.values() if r.article_id == article_id]
        likes = sum(1 for v in votes if v)
        return likes, len(votes) - likes

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def get_subscription(self, channel_id: int, user_id: int) -> Optional[Subscription]:
        with self._lock:
            return next(
                (s for s in self.subscriptions.values() if s.channel_id == channel_id and s.user_id == user_id),
                None
            )

    def create_subscription(self, channel_id: int, user_id: int) -> Subscription:
        with self._lock:
            if channel_id not in self.channels:
                raise RecordNotFound("Channel", channel_id)
            if self.get_subscription(channel_id, user_id) is not None:
                raise DuplicateRecord("Already subscribed to this channel")
            subscription = Subscription(
                id=self._next_id("subscriptions"),
                channel_id=channel_id,
                user_id=user_id,
                created_at=datetime.utcnow(),
            )
            self.subscriptions[subscription.id] = subscription
            return subscription

    def delete_subscription(self, channel_id: int, user_id: int) -> bool:
        with self._lock:
            subscription = self.get_subscription(channel_id, user_id)
            if subscription is None:
                return False
            del self.subscriptions[subscription.id]
            return True

    def list_subscribed_channels(self, user_id: int) -> List[Channel]:
        with self._lock:
            subs = sorted(
                (s for s in self.subscriptions.values() if s.user_id == user_id),
                key=lambda s: s.id
            )
            return [self.channels[s.channel_id] for s in subs if s.channel_id in self.channels]

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def create_note(self, user_id, content, article_id=None, channel_id=None) -> Note:
        with self._lock:
            note = Note(
                id=self._next_id("notes"),
                user_id=user_id,
                content=content,
                article_id=article_id,
                channel_id=channel_id,
                created_at=datetime.utcnow(),
            )
            self.notes[note.id] = note
            return note

    def list_notes(self, user_id: int) -> List[Note]:
        with self._lock:
            return sorted((n for n in self.notes.values() if n.user_id == user_id), key=lambda n: n.id)

    # ------------------------------------------------------------------
    # Taxonomy
    # ------------------------------------------------------------------

    def _distinct(self, field: str) -> List[str]:
        with self._lock:
            values = {getattr(c, field) for c in self.channels.values()}
            values |= {getattr(a, field) for a in self.articles.values()}
        return sorted(v for v in values if v)

    def list_categories(self) -> List[str]:
        return self._distinct("category")

    def list_locations(self) -> List[str]:
        return self._distinct("location")
