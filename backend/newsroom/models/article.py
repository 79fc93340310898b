"""Article, comment and reaction models."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from newsroom.database import Base


class Article(Base):
    """A published or draft piece of content belonging to a channel."""

    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(300), nullable=False)
    content = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)

    channel_id = Column(Integer, ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    category = Column(String(100), nullable=False, index=True)
    location = Column(String(100), nullable=True, index=True)

    published = Column(Boolean, default=True, nullable=False, index=True)
    view_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    last_edited = Column(DateTime, nullable=True)

    # Relationships
    channel = relationship("Channel", back_populates="articles")
    comments = relationship("Comment", back_populates="article", cascade="all, delete-orphan")
    reactions = relationship("Reaction", back_populates="article", cascade="all, delete-orphan")

    @property
    def status(self) -> str:
        return "published" if self.published else "draft"

    def __repr__(self):
        return f"<Article(id={self.id}, title={self.title}, channel_id={self.channel_id})>"


class Comment(Base):
    """Comment on an article, optionally replying to another comment."""

    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    article = relationship("Article", back_populates="comments")
    parent = relationship("Comment", remote_side=[id], back_populates="replies")
    replies = relationship("Comment", back_populates="parent", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Comment(id={self.id}, article_id={self.article_id}, parent_id={self.parent_id})>"


class Reaction(Base):
    """Like/dislike vote by a user on an article."""

    __tablename__ = "reactions"
    __table_args__ = (
        UniqueConstraint("article_id", "user_id", name="uq_reaction_article_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_like = Column(Boolean, nullable=False)

    # Relationships
    article = relationship("Article", back_populates="reactions")

    def __repr__(self):
        return f"<Reaction(id={self.id}, article_id={self.article_id}, user_id={self.user_id}, is_like={self.is_like})>"
