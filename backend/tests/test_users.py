"""
Tests for profile, note and taxonomy endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from newsroom.models import User


@pytest.mark.unit
class TestProfiles:
    """Own record and public profiles."""

    def test_get_own_user(self, client: TestClient, auth_headers: dict, test_user: User):
        response = client.get("/api/user", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == test_user.email

    def test_public_profile_hides_email(self, client: TestClient, test_user: User):
        response = client.get(f"/api/users/{test_user.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["username"] == test_user.username
        assert data["description"] == test_user.description
        assert "email" not in data

    def test_missing_profile(self, client: TestClient):
        assert client.get("/api/users/999").status_code == 404

    def test_update_own_profile(self, client: TestClient, auth_headers: dict, test_user: User):
        response = client.patch(
            f"/api/users/{test_user.id}",
            json={"description": "Investigative reporter", "email": "alice@newsroom.org"},
            headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["description"] == "Investigative reporter"
        assert response.json()["email"] == "alice@newsroom.org"

    def test_update_other_profile_forbidden(self, client: TestClient, auth_headers: dict, test_user2: User):
        response = client.patch(
            f"/api/users/{test_user2.id}",
            json={"description": "Defaced"},
            headers=auth_headers
        )

        assert response.status_code == 403

    def test_update_email_taken(
        self, client: TestClient, auth_headers: dict, test_user: User, test_user2: User
    ):
        response = client.patch(
            f"/api/users/{test_user.id}",
            json={"email": test_user2.email},
            headers=auth_headers
        )

        assert response.status_code == 409

    def test_empty_update_is_noop(self, client: TestClient, auth_headers: dict, test_user: User):
        response = client.patch(f"/api/users/{test_user.id}", json={}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["description"] == test_user.description


@pytest.mark.unit
class TestNotes:
    """Private notes."""

    def test_notes_are_private(
        self, client: TestClient, auth_headers: dict, auth_headers2: dict, article: dict, channel: dict
    ):
        created = client.post(
            "/api/notes",
            json={"content": "Follow up with the mayor", "articleId": article["id"], "channelId": channel["id"]},
            headers=auth_headers
        )

        assert created.status_code == 201
        assert created.json()["article_id"] == article["id"]

        mine = client.get("/api/notes", headers=auth_headers).json()
        theirs = client.get("/api/notes", headers=auth_headers2).json()
        assert [n["id"] for n in mine] == [created.json()["id"]]
        assert theirs == []

    def test_note_without_attachment(self, client: TestClient, auth_headers: dict):
        response = client.post("/api/notes", json={"content": "Story ideas"}, headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["article_id"] is None
        assert response.json()["channel_id"] is None

    def test_note_on_missing_article(self, client: TestClient, auth_headers: dict):
        response = client.post("/api/notes", json={"content": "?", "article_id": 999}, headers=auth_headers)

        assert response.status_code == 404

    def test_note_on_someone_elses_draft(
        self, client: TestClient, make_article, auth_headers: dict, auth_headers2: dict, channel: dict
    ):
        draft = make_article(auth_headers, channel["id"], published=False)

        response = client.post("/api/notes", json={"content": "?", "article_id": draft["id"]}, headers=auth_headers2)

        assert response.status_code == 404

    def test_notes_survive_article_deletion(self, client: TestClient, auth_headers: dict, article: dict):
        client.post("/api/notes", json={"content": "Keep this", "article_id": article["id"]}, headers=auth_headers)

        client.delete(f"/api/articles/{article['id']}", headers=auth_headers)

        notes = client.get("/api/notes", headers=auth_headers).json()
        assert len(notes) == 1
        assert notes[0]["article_id"] is None

    def test_notes_require_auth(self, client: TestClient):
        assert client.get("/api/notes").status_code == 401


@pytest.mark.unit
class TestTaxonomy:
    """Distinct categories and locations."""

    def test_categories_and_locations(
        self, client: TestClient, make_article, auth_headers: dict, channel: dict
    ):
        make_article(auth_headers, channel["id"], category="sports", location="Shelbyville")

        categories = client.get("/api/categories").json()
        locations = client.get("/api/locations").json()

        assert categories == ["news", "sports"]
        assert locations == ["Shelbyville", "Springfield"]

    def test_empty(self, client: TestClient):
        assert client.get("/api/categories").json() == []
        assert client.get("/api/locations").json() == []
