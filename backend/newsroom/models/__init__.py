"""Database models."""

from newsroom.models.user import User, UserSession
from newsroom.models.channel import Channel, Subscription
from newsroom.models.article import Article, Comment, Reaction
from newsroom.models.note import Note

__all__ = ["User", "UserSession", "Channel", "Subscription", "Article", "Comment", "Reaction", "Note"]
