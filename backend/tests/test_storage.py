"""
Contract tests run against every storage backend.
"""

import pytest
from datetime import datetime, timedelta

from newsroom.models import User
from newsroom.storage import Storage, RecordNotFound, DuplicateRecord


@pytest.fixture
def desk(storage: Storage, test_user: User):
    return storage.create_channel(test_user.id, "Metro", category="local", location="Springfield")


@pytest.fixture
def story(storage: Storage, test_user: User, desk):
    return storage.create_article(test_user.id, desk.id, "Flood warning", "River is rising.", "weather")


@pytest.mark.unit
class TestUsers:

    def test_lookup_by_each_key(self, storage: Storage):
        user = storage.create_user("carol", email="carol@example.com", supabase_uid="uid-carol")

        assert storage.get_user(user.id).username == "carol"
        assert storage.get_user_by_username("carol").id == user.id
        assert storage.get_user_by_email("carol@example.com").id == user.id
        assert storage.get_user_by_supabase_uid("uid-carol").id == user.id
        assert storage.get_user_by_username("nobody") is None
        assert user.is_active is True
        assert user.created_at is not None

    def test_duplicate_username(self, storage: Storage, test_user: User):
        with pytest.raises(DuplicateRecord):
            storage.create_user(test_user.username)

    def test_duplicate_email(self, storage: Storage, test_user: User):
        with pytest.raises(DuplicateRecord):
            storage.create_user("someone_else", email=test_user.email)

    def test_users_without_email_do_not_collide(self, storage: Storage):
        storage.create_user("first")
        storage.create_user("second")

        assert storage.get_user_by_username("second") is not None

    def test_update_user(self, storage: Storage, test_user: User):
        updated = storage.update_user(test_user.id, description="Editor")

        assert updated.description == "Editor"
        assert storage.get_user(test_user.id).description == "Editor"

    def test_update_unknown_field(self, storage: Storage, test_user: User):
        with pytest.raises(ValueError):
            storage.update_user(test_user.id, id=42)

    def test_update_missing_user(self, storage: Storage):
        with pytest.raises(RecordNotFound):
            storage.update_user(999, description="x")


@pytest.mark.unit
class TestSessions:

    def test_create_get_delete(self, storage: Storage, test_user: User):
        expires = datetime.utcnow() + timedelta(hours=1)
        storage.create_session(test_user.id, "token-1", expires, ip_address="127.0.0.1")

        assert storage.get_session("token-1").user_id == test_user.id
        assert storage.delete_session("token-1") is True
        assert storage.delete_session("token-1") is False
        assert storage.get_session("token-1") is None

    def test_duplicate_token(self, storage: Storage, test_user: User):
        expires = datetime.utcnow() + timedelta(hours=1)
        storage.create_session(test_user.id, "token-1", expires)

        with pytest.raises(DuplicateRecord):
            storage.create_session(test_user.id, "token-1", expires)

    def test_cleanup_expired_sessions(self, storage: Storage, test_user: User):
        now = datetime.utcnow()
        storage.create_session(test_user.id, "old", now - timedelta(minutes=5))
        storage.create_session(test_user.id, "fresh", now + timedelta(hours=1))

        assert storage.cleanup_expired_sessions(now) == 1
        assert storage.get_session("old") is None
        assert storage.get_session("fresh") is not None

    def test_touch_session(self, storage: Storage, test_user: User):
        storage.create_session(test_user.id, "token-1", datetime.utcnow() + timedelta(hours=1))
        before = storage.get_session("token-1").last_activity

        storage.touch_session("token-1")

        assert storage.get_session("token-1").last_activity >= before


@pytest.mark.unit
class TestChannelsAndArticles:

    def test_channel_fields(self, storage: Storage, desk, test_user: User):
        fetched = storage.get_channel(desk.id)

        assert fetched.user_id == test_user.id
        assert fetched.category == "local"
        assert storage.list_channels(user_id=test_user.id)[0].id == desk.id

    def test_unknown_channel_field(self, storage: Storage, test_user: User):
        with pytest.raises(ValueError):
            storage.create_channel(test_user.id, "Bad", owner="someone")

    def test_update_missing_channel(self, storage: Storage):
        with pytest.raises(RecordNotFound):
            storage.update_channel(999, name="x")

    def test_article_defaults(self, storage: Storage, story):
        fetched = storage.get_article(story.id)

        assert fetched.published is True
        assert fetched.status == "published"
        assert fetched.view_count == 0
        assert fetched.last_edited is None

    def test_counts_respect_drafts(self, storage: Storage, test_user: User, desk, story):
        storage.create_article(test_user.id, desk.id, "Draft", "Not yet", "weather", published=False)

        assert storage.count_articles(desk.id) == 1
        assert storage.count_articles(desk.id, include_drafts=True) == 2

    def test_list_articles_filters(self, storage: Storage, test_user: User, desk, story):
        draft = storage.create_article(test_user.id, desk.id, "Draft", "Not yet", "weather", published=False)
        other = storage.create_article(test_user.id, desk.id, "Derby", "Final score", "sports")

        published = [a.id for a in storage.list_articles()]
        everything = [a.id for a in storage.list_articles(user_id=test_user.id, include_drafts=True)]
        sports = [a.id for a in storage.list_articles(category="sports")]

        assert published == [other.id, story.id]
        assert everything == [other.id, draft.id, story.id]
        assert sports == [other.id]
        assert [a.id for a in storage.list_articles(limit=1, offset=1)] == [story.id]

    def test_increment_view_count(self, storage: Storage, story):
        assert storage.increment_view_count(story.id) == 1
        assert storage.increment_view_count(story.id) == 2
        assert storage.get_article(story.id).view_count == 2

    def test_increment_missing_article(self, storage: Storage):
        with pytest.raises(RecordNotFound):
            storage.increment_view_count(999)

    def test_delete_missing_article(self, storage: Storage):
        with pytest.raises(RecordNotFound):
            storage.delete_article(999)

    def test_delete_channel_cascades(self, storage: Storage, test_user: User, test_user2: User, desk, story):
        comment = storage.create_comment(story.id, test_user2.id, "Stay safe")
        storage.set_reaction(story.id, test_user2.id, True)
        storage.create_subscription(desk.id, test_user2.id)
        note = storage.create_note(test_user.id, "Check levels", article_id=story.id, channel_id=desk.id)

        storage.delete_channel(desk.id)

        assert storage.get_channel(desk.id) is None
        assert storage.get_article(story.id) is None
        assert storage.get_comment(comment.id) is None
        assert storage.count_reactions(story.id) == (0, 0)
        assert storage.get_subscription(desk.id, test_user2.id) is None

        notes = storage.list_notes(test_user.id)
        assert [n.id for n in notes] == [note.id]
        assert notes[0].article_id is None
        assert notes[0].channel_id is None


@pytest.mark.unit
class TestInteractions:

    def test_comment_threads(self, storage: Storage, test_user: User, test_user2: User, story):
        parent = storage.create_comment(story.id, test_user2.id, "Question")
        reply = storage.create_comment(story.id, test_user.id, "Answer", parent_id=parent.id)
        storage.create_comment(story.id, test_user2.id, "Follow-up", parent_id=reply.id)

        assert storage.count_comments(story.id) == 3
        assert [c.id for c in storage.list_comments(story.id)][:2] == [parent.id, reply.id]

        storage.delete_comment(parent.id)

        assert storage.count_comments(story.id) == 0

    def test_comment_on_missing_article(self, storage: Storage, test_user: User):
        with pytest.raises(RecordNotFound):
            storage.create_comment(999, test_user.id, "Hello")

    def test_reaction_replaced(self, storage: Storage, test_user: User, test_user2: User, story):
        storage.set_reaction(story.id, test_user.id, True)
        storage.set_reaction(story.id, test_user2.id, True)
        storage.set_reaction(story.id, test_user2.id, False)

        assert storage.count_reactions(story.id) == (1, 1)
        assert storage.get_reaction(story.id, test_user2.id).is_like is False
        assert storage.delete_reaction(story.id, test_user2.id) is True
        assert storage.delete_reaction(story.id, test_user2.id) is False

    def test_subscriptions(self, storage: Storage, test_user2: User, desk):
        storage.create_subscription(desk.id, test_user2.id)

        with pytest.raises(DuplicateRecord):
            storage.create_subscription(desk.id, test_user2.id)

        assert storage.count_subscribers(desk.id) == 1
        assert [c.id for c in storage.list_subscribed_channels(test_user2.id)] == [desk.id]
        assert storage.delete_subscription(desk.id, test_user2.id) is True
        assert storage.delete_subscription(desk.id, test_user2.id) is False

    def test_subscribe_to_missing_channel(self, storage: Storage, test_user: User):
        with pytest.raises(RecordNotFound):
            storage.create_subscription(999, test_user.id)

    def test_categories_and_locations(self, storage: Storage, test_user: User, desk, story):
        storage.create_article(test_user.id, desk.id, "Derby", "Final", "sports", location="Shelbyville")

        assert storage.list_categories() == ["local", "sports", "weather"]
        assert storage.list_locations() == ["Shelbyville", "Springfield"]

    def test_ping(self, storage: Storage):
        assert storage.ping() is True
