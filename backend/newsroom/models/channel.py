"""Channel and subscription models."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from newsroom.database import Base


class Channel(Base):
    """A publisher's named collection of articles."""

    __tablename__ = "channels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    category = Column(String(100), nullable=True, index=True)
    location = Column(String(100), nullable=True, index=True)
    banner_image = Column(Text, nullable=True)
    profile_image = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="channels")
    articles = relationship("Article", back_populates="channel", cascade="all, delete-orphan")
    subscriptions = relationship("Subscription", back_populates="channel", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Channel(id={self.id}, name={self.name}, user_id={self.user_id})>"


class Subscription(Base):
    """A user's follow relationship to a channel."""

    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("channel_id", "user_id", name="uq_subscription_channel_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    channel_id = Column(Integer, ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    channel = relationship("Channel", back_populates="subscriptions")
    user = relationship("User", back_populates="subscriptions")

    def __repr__(self):
        return f"<Subscription(id={self.id}, channel_id={self.channel_id}, user_id={self.user_id})>"
