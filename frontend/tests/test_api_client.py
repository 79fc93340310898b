"""
Tests for the Streamlit API client.
"""

import pytest
import requests
from unittest.mock import MagicMock, patch

from components.api_client import APIClient, build_comment_tree, normalize_record, to_snake


def fake_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.content = b"{}" if payload is not None else b""
    response.json.return_value = payload
    return response


@pytest.fixture
def api():
    return APIClient(base_url="http://api.test/")


@pytest.mark.unit
class TestNormalization:

    def test_to_snake(self):
        assert to_snake("channelId") == "channel_id"
        assert to_snake("isLike") == "is_like"
        assert to_snake("already_snake") == "already_snake"

    def test_normalize_nested(self):
        data = [{"channelId": 1, "author": {"userName": "alice"}, "tags": ["keepMe"]}]

        assert normalize_record(data) == [{"channel_id": 1, "author": {"user_name": "alice"}, "tags": ["keepMe"]}]

    def test_build_comment_tree(self):
        comments = [
            {"id": 1, "parent_id": None, "content": "root"},
            {"id": 2, "parent_id": 1, "content": "reply"},
            {"id": 3, "parent_id": 2, "content": "nested"},
            {"id": 4, "parent_id": 99, "content": "orphan"},
            {"id": 5, "parent_id": 1, "content": "second reply"},
        ]

        tree = build_comment_tree(comments)

        assert [c["id"] for c in tree] == [1, 4]
        assert [c["id"] for c in tree[0]["replies"]] == [2, 5]
        assert tree[0]["replies"][0]["replies"][0]["content"] == "nested"
        assert tree[1]["replies"] == []

    def test_build_comment_tree_empty(self):
        assert build_comment_tree([]) == []


@pytest.mark.unit
class TestAuthCalls:

    @patch("components.api_client.requests.request")
    def test_login_stores_token(self, mock_request, api):
        mock_request.return_value = fake_response(200, {"access_token": "abc", "user": {"username": "alice"}})

        success, data = api.login("alice", "secret")

        assert success is True
        assert api.token == "abc"
        method, url = mock_request.call_args.args
        assert (method, url) == ("POST", "http://api.test/api/auth/login")

    @patch("components.api_client.requests.request")
    def test_login_failure_returns_detail(self, mock_request, api):
        mock_request.return_value = fake_response(401, {"detail": "Invalid credentials"})

        assert api.login("alice", "wrong") == (False, "Invalid credentials")
        assert api.token is None

    @patch("components.api_client.requests.request")
    def test_validation_errors_are_joined(self, mock_request, api):
        mock_request.return_value = fake_response(422, {"detail": [{"msg": "too short"}, {"msg": "bad email"}]})

        assert api.register("al", "x") == (False, "too short; bad email")

    @patch("components.api_client.requests.request")
    def test_connection_error(self, mock_request, api):
        mock_request.side_effect = requests.exceptions.ConnectionError()

        success, message = api.get_current_user()

        assert success is False
        assert "Cannot connect" in message

    @patch("components.api_client.requests.request")
    def test_authorization_header(self, mock_request, api):
        api.token = "abc"
        mock_request.return_value = fake_response(200, {"username": "alice"})

        api.get_current_user()

        assert mock_request.call_args.kwargs["headers"]["Authorization"] == "Bearer abc"

    @patch("components.api_client.requests.request")
    def test_logout_drops_token(self, mock_request, api):
        api.token = "abc"
        mock_request.return_value = fake_response(200, {"message": "Logged out successfully"})

        assert api.logout() == (True, "Logged out successfully")
        assert api.token is None

    def test_verify_without_token(self, api):
        assert api.verify_token() is False

    @patch("components.api_client.requests.get")
    def test_health_check(self, mock_get, api):
        mock_get.return_value = fake_response(200, {"status": "healthy"})
        assert api.health_check() is True

        mock_get.side_effect = requests.exceptions.Timeout()
        assert api.health_check() is False


@pytest.mark.unit
class TestContentCalls:

    @patch("components.api_client.requests.request")
    def test_list_responses_are_cached_and_normalized(self, mock_request, api):
        mock_request.return_value = fake_response(200, [{"id": 1, "channelId": 3}])

        first = api.list_articles(category="sports")
        second = api.list_articles(category="sports")

        assert first == second == (True, [{"id": 1, "channel_id": 3}])
        assert mock_request.call_count == 1
        assert mock_request.call_args.kwargs["params"] == {"category": "sports", "limit": 50, "offset": 0}

    @patch("components.api_client.requests.request")
    def test_mutations_clear_cache(self, mock_request, api):
        mock_request.return_value = fake_response(200, [])
        api.list_channels()

        mock_request.return_value = fake_response(201, {"id": 9, "name": "Metro"})
        api.create_channel("Metro", category="local")

        mock_request.return_value = fake_response(200, [{"id": 9}])
        assert api.list_channels() == (True, [{"id": 9}])
        assert mock_request.call_count == 3

    @patch("components.api_client.requests.request")
    def test_subscribe_accepts_existing(self, mock_request, api):
        mock_request.return_value = fake_response(200, {"id": 1, "channel_id": 2, "user_id": 3})

        success, _ = api.subscribe(2)

        assert success is True

    @patch("components.api_client.requests.request")
    def test_create_article_body(self, mock_request, api):
        mock_request.return_value = fake_response(201, {"id": 5, "status": "draft"})

        api.create_article("Title", "Body", channel_id=2, category="news", published=False)

        body = mock_request.call_args.kwargs["json"]
        assert body["published"] is False
        assert body["channel_id"] == 2
        assert body["summary"] is None

    @patch("components.api_client.requests.request")
    def test_comment_tree(self, mock_request, api):
        mock_request.return_value = fake_response(200, [
            {"id": 1, "parentId": None, "content": "root"},
            {"id": 2, "parentId": 1, "content": "reply"},
        ])

        success, tree = api.get_comment_tree(7)

        assert success is True
        assert tree[0]["replies"][0]["id"] == 2

    @patch("components.api_client.requests.request")
    def test_update_profile_sends_only_given_fields(self, mock_request, api):
        mock_request.return_value = fake_response(200, {"id": 1})

        api.update_profile(1, description="Editor")

        assert mock_request.call_args.kwargs["json"] == {"description": "Editor"}

    @patch("components.api_client.requests.request")
    def test_react(self, mock_request, api):
        mock_request.return_value = fake_response(200, {"articleId": 4, "likes": 1, "dislikes": 0, "userReaction": True})

        success, summary = api.react(4, True)

        assert summary["user_reaction"] is True
        assert mock_request.call_args.kwargs["json"] == {"is_like": True}

    @patch("components.api_client.requests.request")
    def test_get_article_counts_view_by_default(self, mock_request, api):
        mock_request.return_value = fake_response(200, {"id": 4, "viewCount": 1})

        success, article = api.get_article(4)

        assert article["view_count"] == 1
        assert mock_request.call_args.kwargs["params"] is None

    @patch("components.api_client.requests.request")
    def test_get_article_refresh_skips_view(self, mock_request, api):
        mock_request.return_value = fake_response(200, {"id": 4, "viewCount": 1})

        api.get_article(4, count_view=False)

        assert mock_request.call_args.kwargs["params"] == {"count_view": "false"}
