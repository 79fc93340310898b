"""Build enriched API responses for channels, articles and comments."""

from typing import List, Optional

from newsroom.models import Article, Channel, Comment, User
from newsroom.models.schemas import (
    ArticleResponse,
    ChannelResponse,
    CommentResponse,
    ReactionSummary,
)
from newsroom.storage import Storage


class ContentService:
    """Joins counts and related names onto stored records."""

    @staticmethod
    def channel_response(storage: Storage, channel: Channel, viewer: Optional[User] = None) -> ChannelResponse:
        """Channel with subscriber and article counts; the owner's count includes drafts."""
        include_drafts = viewer is not None and viewer.id == channel.user_id
        response = ChannelResponse.model_validate(channel)
        response.subscriber_count = storage.count_subscribers(channel.id)
        response.article_count = storage.count_articles(channel.id, include_drafts=include_drafts)
        return response

    @staticmethod
    def channel_list(storage: Storage, channels: List[Channel], viewer: Optional[User] = None) -> List[ChannelResponse]:
        return [ContentService.channel_response(storage, c, viewer) for c in channels]

    @staticmethod
    def article_response(storage: Storage, article: Article, viewer: Optional[User] = None) -> ArticleResponse:
        """
        Article with reaction totals, comment count, channel name and author.

        user_reaction is the viewer's own vote (True like, False dislike) or
        None when anonymous or not voted.
        """
        response = ArticleResponse.model_validate(article)

        channel = storage.get_channel(article.channel_id)
        response.channel_name = channel.name if channel else None

        author = storage.get_user(article.user_id)
        response.author_username = author.username if author else None

        response.likes, response.dislikes = storage.count_reactions(article.id)
        response.comment_count = storage.count_comments(article.id)

        if viewer is not None:
            reaction = storage.get_reaction(article.id, viewer.id)
            response.user_reaction = reaction.is_like if reaction else None

        return response

    @staticmethod
    def article_list(storage: Storage, articles: List[Article], viewer: Optional[User] = None) -> List[ArticleResponse]:
        return [ContentService.article_response(storage, a, viewer) for a in articles]

    @staticmethod
    def comment_list(storage: Storage, comments: List[Comment]) -> List[CommentResponse]:
        """Comments with the author's username, resolving each author once."""
        usernames = {}
        result = []
        for comment in comments:
            if comment.user_id not in usernames:
                author = storage.get_user(comment.user_id)
                usernames[comment.user_id] = author.username if author else None

            response = CommentResponse.model_validate(comment)
            response.username = usernames[comment.user_id]
            result.append(response)
        return result

    @staticmethod
    def reaction_summary(storage: Storage, article_id: int, viewer: Optional[User] = None) -> ReactionSummary:
        likes, dislikes = storage.count_reactions(article_id)
        user_reaction = None
        if viewer is not None:
            reaction = storage.get_reaction(article_id, viewer.id)
            user_reaction = reaction.is_like if reaction else None
        return ReactionSummary(article_id=article_id, likes=likes, dislikes=dislikes, user_reaction=user_reaction)
