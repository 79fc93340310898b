"""SQLAlchemy storage used for both SQLite and Postgres (Supabase) databases."""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

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

logger = logging.getLogger(__name__)


class SQLStorage(Storage):
    """Storage bound to one SQLAlchemy session; every write commits."""

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, duplicate_message: str = "Record already exists"):
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info("Integrity error on commit: %s", e.orig)
            raise DuplicateRecord(duplicate_message) from e

    def _add(self, record, duplicate_message: str = "Record already exists"):
        self.db.add(record)
        self._commit(duplicate_message)
        self.db.refresh(record)
        return record

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return self.db.query(User).filter(User.email == email).first()

    def get_user_by_supabase_uid(self, supabase_uid: str) -> Optional[User]:
        if not supabase_uid:
            return None
        return self.db.query(User).filter(User.supabase_uid == supabase_uid).first()

    def create_user(self, username, hashed_password=None, email=None, description=None, supabase_uid=None) -> User:
        user = User(
            username=username,
            hashed_password=hashed_password,
            email=email,
            description=description,
            supabase_uid=supabase_uid,
            is_active=True,
        )
        return self._add(user, "User with this username or email already exists")

    def update_user(self, user_id: int, **changes) -> User:
        validate_changes(changes, USER_UPDATABLE, "user")
        user = self.get_user(user_id)
        if user is None:
            raise RecordNotFound("User", user_id)
        for key, value in changes.items():
            setattr(user, key, value)
        self._commit("User with this username or email already exists")
        self.db.refresh(user)
        return user

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, user_id, session_token, expires_at, ip_address=None, user_agent=None) -> UserSession:
        session = UserSession(
            user_id=user_id,
            session_token=session_token,
            ip_address=ip_address,
            user_agent=user_agent,
            expires_at=expires_at,
        )
        return self._add(session, "Session token already exists")

    def get_session(self, session_token: str) -> Optional[UserSession]:
        return self.db.query(UserSession).filter(UserSession.session_token == session_token).first()

    def touch_session(self, session_token: str) -> None:
        session = self.get_session(session_token)
        if session is not None:
            session.last_activity = datetime.utcnow()
            self.db.commit()

    def delete_session(self, session_token: str) -> bool:
        session = self.get_session(session_token)
        if session is None:
            return False
        self.db.delete(session)
        self.db.commit()
        return True

    def cleanup_expired_sessions(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        count = self.db.query(UserSession).filter(
            UserSession.expires_at < now
        ).delete(synchronize_session=False)
        self.db.commit()
        return count

    # ------------------------------------------------------------------
    # Channels
    # ------------------------------------------------------------------

    def create_channel(self, user_id: int, name: str, **fields) -> Channel:
        validate_changes(fields, CHANNEL_UPDATABLE, "channel")
        return self._add(Channel(user_id=user_id, name=name, **fields))

    def get_channel(self, channel_id: int) -> Optional[Channel]:
        return self.db.query(Channel).filter(Channel.id == channel_id).first()

    def list_channels(self, user_id: Optional[int] = None) -> List[Channel]:
        query = self.db.query(Channel)
        if user_id is not None:
            query = query.filter(Channel.user_id == user_id)
        return query.order_by(Channel.id).all()

    def update_channel(self, channel_id: int, **changes) -> Channel:
        validate_changes(changes, CHANNEL_UPDATABLE, "channel")
        channel = self.get_channel(channel_id)
        if channel is None:
            raise RecordNotFound("Channel", channel_id)
        for key, value in changes.items():
            setattr(channel, key, value)
        self._commit()
        self.db.refresh(channel)
        return channel

    def delete_channel(self, channel_id: int) -> None:
        channel = self.get_channel(channel_id)
        if channel is None:
            raise RecordNotFound("Channel", channel_id)
        article_ids = [a.id for a in channel.articles]
        query = self.db.query(Note)
        query.filter(Note.channel_id == channel_id).update({Note.channel_id: None}, synchronize_session=False)
        if article_ids:
            query.filter(Note.article_id.in_(article_ids)).update({Note.article_id: None}, synchronize_session=False)
        # Articles, comments, reactions and subscriptions go through ORM cascades
        self.db.delete(channel)
        self.db.commit()

    def count_subscribers(self, channel_id: int) -> int:
        return self.db.query(func.count(Subscription.id)).filter(
            Subscription.channel_id == channel_id
        ).scalar() or 0

    def count_articles(self, channel_id: int, include_drafts: bool = False) -> int:
        query = self.db.query(func.count(Article.id)).filter(Article.channel_id == channel_id)
        if not include_drafts:
            query = query.filter(Article.published.is_(True))
        return query.scalar() or 0

    # ------------------------------------------------------------------
    # Articles
    # ------------------------------------------------------------------

    def create_article(self, user_id, channel_id, title, content, category, **fields) -> Article:
        validate_changes(fields, ARTICLE_UPDATABLE, "article")
        if self.get_channel(channel_id) is None:
            raise RecordNotFound("Channel", channel_id)
        article = Article(
            user_id=user_id,
            channel_id=channel_id,
            title=title,
            content=content,
            category=category,
            view_count=0,
            **fields
        )
        return self._add(article)

    def get_article(self, article_id: int) -> Optional[Article]:
        return self.db.query(Article).filter(Article.id == article_id).first()

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
        query = self.db.query(Article)

        if channel_id is not None:
            query = query.filter(Article.channel_id == channel_id)
        if user_id is not None:
            query = query.filter(Article.user_id == user_id)
        if category:
            query = query.filter(Article.category == category)
        if location:
            query = query.filter(Article.location == location)
        if not include_drafts:
            query = query.filter(Article.published.is_(True))

        query = query.order_by(Article.created_at.desc(), Article.id.desc())
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def update_article(self, article_id: int, **changes) -> Article:
        validate_changes(changes, ARTICLE_UPDATABLE, "article")
        article = self.get_article(article_id)
        if article is None:
            raise RecordNotFound("Article", article_id)
        if "channel_id" in changes and self.get_channel(changes["channel_id"]) is None:
            raise RecordNotFound("Channel", changes["channel_id"])
        for key, value in changes.items():
            setattr(article, key, value)
        self._commit()
        self.db.refresh(article)
        return article

    def delete_article(self, article_id: int) -> None:
        article = self.get_article(article_id)
        if article is None:
            raise RecordNotFound("Article", article_id)
        self.db.query(Note).filter(Note.article_id == article_id).update(
            {Note.article_id: None}, synchronize_session=False
        )
        self.db.delete(article)
        self.db.commit()

    def increment_view_count(self, article_id: int) -> int:
        updated = self.db.query(Article).filter(Article.id == article_id).update(
            {Article.view_count: Article.view_count + 1}, synchronize_session=False
        )
        if not updated:
            self.db.rollback()
            raise RecordNotFound("Article", article_id)
        self.db.commit()
        return self.db.query(Article.view_count).filter(Article.id == article_id).scalar()

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def create_comment(self, article_id, user_id, content, parent_id=None) -> Comment:
        if self.get_article(article_id) is None:
            raise RecordNotFound("Article", article_id)
        comment = Comment(article_id=article_id, user_id=user_id, content=content, parent_id=parent_id)
        return self._add(comment)

    def get_comment(self, comment_id: int) -> Optional[Comment]:
        return self.db.query(Comment).filter(Comment.id == comment_id).first()

    def list_comments(self, article_id: int) -> List[Comment]:
        return self.db.query(Comment).filter(
            Comment.article_id == article_id
        ).order_by(Comment.created_at.asc(), Comment.id.asc()).all()

    def count_comments(self, article_id: int) -> int:
        return self.db.query(func.count(Comment.id)).filter(Comment.article_id == article_id).scalar() or 0

    def delete_comment(self, comment_id: int) -> None:
        comment = self.get_comment(comment_id)
        if comment is None:
            raise RecordNotFound("Comment", comment_id)
        # Replies are removed through the self-referential cascade
        self.db.delete(comment)
        self.db.commit()

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    def get_reaction(self, article_id: int, user_id: int) -> Optional[Reaction]:
        return self.db.query(Reaction).filter(
            Reaction.article_id == article_id,
            Reaction.user_id == user_id
        ).first()

    def set_reaction(self, article_id: int, user_id: int, is_like: bool) -> Reaction:
        if self.get_article(article_id) is None:
            raise RecordNotFound("Article", article_id)
        reaction = self.get_reaction(article_id, user_id)
        if reaction is None:
            return self._add(Reaction(article_id=article_id, user_id=user_id, is_like=is_like))
        reaction.is_like = is_like
        self._commit()
        self.db.refresh(reaction)
        return reaction

    def delete_reaction(self, article_id: int, user_id: int) -> bool:
        reaction = self.get_reaction(article_id, user_id)
        if reaction is None:
            return False
        self.db.delete(reaction)
        self.db.commit()
        return True

    def count_reactions(self, article_id: int) -> Tuple[int, int]:
        rows = self.db.query(Reaction.is_like, func.count(Reaction.id)).filter(
            Reaction.article_id == article_id
        ).group_by(Reaction.is_like).all()
        totals = {bool(is_like): count for is_like, count in rows}
        return totals.get(True, 0), totals.get(False, 0)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def get_subscription(self, channel_id: int, user_id: int) -> Optional[Subscription]:
        return self.db.query(Subscription).filter(
            Subscription.channel_id == channel_id,
            Subscription.user_id == user_id
        ).first()

    def create_subscription(self, channel_id: int, user_id: int) -> Subscription:
        if self.get_channel(channel_id) is None:
            raise RecordNotFound("Channel", channel_id)
        if self.get_subscription(channel_id, user_id) is not None:
            raise DuplicateRecord("Already subscribed to this channel")
        return self._add(
            Subscription(channel_id=channel_id, user_id=user_id),
            "Already subscribed to this channel"
        )

    def delete_subscription(self, channel_id: int, user_id: int) -> bool:
        deleted = self.db.query(Subscription).filter(
            Subscription.channel_id == channel_id,
            Subscription.user_id == user_id
        ).delete(synchronize_session=False)
        self.db.commit()
        return deleted > 0

    def list_subscribed_channels(self, user_id: int) -> List[Channel]:
        return self.db.query(Channel).join(
            Subscription, Subscription.channel_id == Channel.id
        ).filter(Subscription.user_id == user_id).order_by(Subscription.id).all()

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def create_note(self, user_id, content, article_id=None, channel_id=None) -> Note:
        return self._add(Note(user_id=user_id, content=content, article_id=article_id, channel_id=channel_id))

    def list_notes(self, user_id: int) -> List[Note]:
        return self.db.query(Note).filter(Note.user_id == user_id).order_by(Note.id).all()

    # ------------------------------------------------------------------
    # Taxonomy
    # ------------------------------------------------------------------

    def _distinct(self, channel_column, article_column) -> List[str]:
        values = {row[0] for row in self.db.query(channel_column).distinct()}
        values |= {row[0] for row in self.db.query(article_column).distinct()}
        return sorted(v for v in values if v)

    def list_categories(self) -> List[str]:
        return self._distinct(Channel.category, Article.category)

    def list_locations(self) -> List[str]:
        return self._distinct(Channel.location, Article.location)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        self.db.execute(text("SELECT 1"))
        return True
