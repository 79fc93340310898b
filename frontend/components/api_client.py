"""API client for backend communication."""

import re
import requests
from typing import Optional, Dict, Any, List, Tuple
import os

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])([A-Z])')


def to_snake(key: str) -> str:
    """Convert a camelCase key to snake_case."""
    return _CAMEL_BOUNDARY.sub(r'_\1', key).lower()


def normalize_record(data: Any) -> Any:
    """
    Convert camelCase keys to snake_case, recursively.

    Older deployments of the API answered with camelCase keys
    (channelId, createdAt); pages only ever read snake_case.
    """
    if isinstance(data, list):
        return [normalize_record(item) for item in data]
    if isinstance(data, dict):
        return {to_snake(key): normalize_record(value) for key, value in data.items()}
    return data


def build_comment_tree(comments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Nest flat comments under their parents.

    Each returned comment gains a "replies" list. Order within every level
    follows the input order; comments whose parent is missing become roots.
    """
    nodes = {c["id"]: {**c, "replies": []} for c in comments}
    roots = []

    for comment in comments:
        node = nodes[comment["id"]]
        parent = nodes.get(comment.get("parent_id"))
        if parent is not None and parent is not node:
            parent["replies"].append(node)
        else:
            roots.append(node)

    return roots


class APIClient:
    """Client for communicating with FastAPI backend."""

    def __init__(self, base_url: Optional[str] = None, timeout: int = 10):
        """
        Initialize API client.

        Args:
            base_url: Base URL of the API (default: from environment or localhost)
            timeout: Seconds to wait for each request
        """
        self.base_url = (base_url or os.getenv("API_BASE_URL", "http://localhost:8000")).rstrip("/")
        self.timeout = timeout
        self.token: Optional[str] = None
        self._cache: Dict[Tuple[str, Tuple], Any] = {}

    def _get_headers(self) -> Dict[str, str]:
        """
        Get request headers with authorization token if logged in.

        Returns:
            Headers dictionary
        """
        headers = {
            "Content-Type": "application/json"
        }

        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        return headers

    def clear_cache(self):
        """Forget cached list responses."""
        self._cache.clear()

    def _request(
        self,
        method: str,
        path: str,
        expected: Tuple[int, ...] = (200,),
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        cache: bool = False,
        error: str = "Request failed"
    ) -> Tuple[bool, Any]:
        """
        Send a request and unpack the response.

        Successful writes clear the list cache; GETs with cache=True are
        answered from it until then.

        Returns:
            Tuple of (success, data or error_message)
        """
        params = {k: v for k, v in (params or {}).items() if v is not None}
        cache_key = (path, tuple(sorted(params.items())))

        if cache and cache_key in self._cache:
            return True, self._cache[cache_key]

        try:
            response = requests.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                params=params or None,
                headers=self._get_headers(),
                timeout=self.timeout
            )
        except requests.exceptions.ConnectionError:
            return False, "Cannot connect to server. Make sure the backend is running."
        except requests.exceptions.RequestException as e:
            return False, f"Error: {str(e)}"

        if response.status_code not in expected:
            try:
                detail = response.json().get("detail", error)
            except ValueError:
                detail = error
            if isinstance(detail, list):
                # FastAPI validation errors
                detail = "; ".join(item.get("msg", str(item)) for item in detail)
            return False, detail

        data = normalize_record(response.json()) if response.content else None

        if method == "GET":
            if cache:
                self._cache[cache_key] = data
        else:
            self.clear_cache()

        return True, data

    # ============================================
    # Authentication
    # ============================================

    def register(
        self,
        username: str,
        password: str,
        email: Optional[str] = None,
        description: Optional[str] = None
    ) -> Tuple[bool, Any]:
        """
        Register a new user and keep the issued token.

        Returns:
            Tuple of (success, token response or error_message)
        """
        success, data = self._request(
            "POST",
            "/api/auth/register",
            expected=(201,),
            json={
                "username": username,
                "password": password,
                "email": email or None,
                "description": description or None
            },
            error="Registration failed"
        )
        if success:
            self.token = data["access_token"]
        return success, data

    def login(self, username: str, password: str) -> Tuple[bool, Any]:
        """
        Login with username/email and password.

        Returns:
            Tuple of (success, token response or error_message)
        """
        success, data = self._request(
            "POST",
            "/api/auth/login",
            json={"username": username, "password": password},
            error="Login failed"
        )
        if success:
            self.token = data["access_token"]
        return success, data

    def supabase_login(self, access_token: str) -> Tuple[bool, Any]:
        """Exchange a Supabase access token for a newsroom session."""
        success, data = self._request(
            "POST",
            "/api/auth/supabase-callback",
            json={"access_token": access_token},
            error="Supabase sign-in failed"
        )
        if success:
            self.token = data["access_token"]
        return success, data

    def logout(self) -> Tuple[bool, str]:
        """
        Logout current user. The local token is dropped either way.

        Returns:
            Tuple of (success, message)
        """
        success, data = self._request("POST", "/api/auth/logout", error="Logout failed")
        self.token = None
        self.clear_cache()

        if success:
            return True, "Logged out successfully"
        return False, data

    def get_current_user(self) -> Tuple[bool, Any]:
        """Get current authenticated user information."""
        return self._request("GET", "/api/auth/me", error="Failed to get user information")

    def verify_token(self) -> bool:
        """Check whether the current token is still backed by a session."""
        if not self.token:
            return False
        success, _ = self._request("GET", "/api/auth/verify")
        return success

    def health_check(self) -> bool:
        """
        Check if the API is healthy.

        Returns:
            True if API is accessible, False otherwise
        """
        try:
            response = requests.get(f"{self.base_url}/health", timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False

    # ============================================
    # Users
    # ============================================

    def get_user_profile(self, user_id: int) -> Tuple[bool, Any]:
        """Public profile of any user."""
        return self._request("GET", f"/api/users/{user_id}", error="User not found")

    def update_profile(
        self,
        user_id: int,
        description: Optional[str] = None,
        email: Optional[str] = None
    ) -> Tuple[bool, Any]:
        """Update the logged-in user's description and/or email."""
        body = {}
        if description is not None:
            body["description"] = description
        if email:
            body["email"] = email
        return self._request("PATCH", f"/api/users/{user_id}", json=body, error="Update failed")

    def get_my_subscriptions(self) -> Tuple[bool, Any]:
        """Channels the logged-in user follows."""
        return self._request("GET", "/api/user/subscriptions", cache=True)

    def get_my_channels(self) -> Tuple[bool, Any]:
        """Channels the logged-in user owns."""
        return self._request("GET", "/api/user/channels", cache=True)

    def get_my_articles(self) -> Tuple[bool, Any]:
        """Articles the logged-in user wrote, drafts included."""
        return self._request("GET", "/api/user/articles", cache=True)

    def get_user_subscriptions(self, user_id: int) -> Tuple[bool, Any]:
        """Channels any user follows."""
        return self._request("GET", f"/api/users/{user_id}/subscriptions", cache=True)

    # ============================================
    # Channels
    # ============================================

    def list_channels(self, order_by: Optional[str] = None, user_id: Optional[int] = None) -> Tuple[bool, Any]:
        """
        List channels.

        Args:
            order_by: created_at, subscriber_count or article_count
            user_id: Only channels owned by this user
        """
        return self._request(
            "GET",
            "/api/channels",
            params={"order_by": order_by, "user_id": user_id},
            cache=True
        )

    def get_channel(self, channel_id: int) -> Tuple[bool, Any]:
        return self._request("GET", f"/api/channels/{channel_id}", error="Channel not found")

    def create_channel(self, name: str, **fields) -> Tuple[bool, Any]:
        """Create a channel; fields are description, category, location, banner_image, profile_image."""
        return self._request(
            "POST",
            "/api/channels",
            expected=(201,),
            json={"name": name, **fields},
            error="Failed to create channel"
        )

    def update_channel(self, channel_id: int, **fields) -> Tuple[bool, Any]:
        return self._request("PATCH", f"/api/channels/{channel_id}", json=fields, error="Update failed")

    def delete_channel(self, channel_id: int) -> Tuple[bool, Any]:
        return self._request("DELETE", f"/api/channels/{channel_id}", error="Delete failed")

    def list_channel_articles(self, channel_id: int) -> Tuple[bool, Any]:
        """Articles of a channel; the owner also sees drafts."""
        return self._request("GET", f"/api/channels/{channel_id}/articles", cache=True)

    def subscribe(self, channel_id: int) -> Tuple[bool, Any]:
        """Follow a channel. Following twice is not an error."""
        return self._request(
            "POST",
            f"/api/channels/{channel_id}/subscribe",
            expected=(200, 201),
            error="Subscribe failed"
        )

    def unsubscribe(self, channel_id: int) -> Tuple[bool, Any]:
        return self._request("DELETE", f"/api/channels/{channel_id}/subscribe", error="Unsubscribe failed")

    def get_subscription_status(self, channel_id: int) -> Tuple[bool, Any]:
        return self._request("GET", f"/api/channels/{channel_id}/subscription")

    # ============================================
    # Articles
    # ============================================

    def list_articles(
        self,
        channel_id: Optional[int] = None,
        category: Optional[str] = None,
        location: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[bool, Any]:
        """Published articles, newest first."""
        return self._request(
            "GET",
            "/api/articles",
            params={
                "channel_id": channel_id,
                "category": category,
                "location": location,
                "limit": limit,
                "offset": offset
            },
            cache=True
        )

    def get_article(self, article_id: int, count_view: bool = True) -> Tuple[bool, Any]:
        """Read an article; count_view=False refreshes it without adding a view."""
        return self._request(
            "GET",
            f"/api/articles/{article_id}",
            params=None if count_view else {"count_view": "false"},
            error="Article not found"
        )

    def create_article(
        self,
        title: str,
        content: str,
        channel_id: int,
        category: str,
        summary: Optional[str] = None,
        location: Optional[str] = None,
        published: bool = True
    ) -> Tuple[bool, Any]:
        return self._request(
            "POST",
            "/api/articles",
            expected=(201,),
            json={
                "title": title,
                "content": content,
                "channel_id": channel_id,
                "category": category,
                "summary": summary or None,
                "location": location or None,
                "published": published
            },
            error="Failed to create article"
        )

    def update_article(self, article_id: int, **fields) -> Tuple[bool, Any]:
        return self._request("PATCH", f"/api/articles/{article_id}", json=fields, error="Update failed")

    def delete_article(self, article_id: int) -> Tuple[bool, Any]:
        return self._request("DELETE", f"/api/articles/{article_id}", error="Delete failed")

    def toggle_article_status(self, article_id: int) -> Tuple[bool, Any]:
        """Switch between published and draft."""
        return self._request("POST", f"/api/articles/{article_id}/toggle-status", error="Status change failed")

    # ============================================
    # Comments and Reactions
    # ============================================

    def list_comments(self, article_id: int) -> Tuple[bool, Any]:
        return self._request("GET", f"/api/articles/{article_id}/comments")

    def get_comment_tree(self, article_id: int) -> Tuple[bool, Any]:
        """Comments of an article nested by reply."""
        success, data = self.list_comments(article_id)
        if not success:
            return False, data
        return True, build_comment_tree(data)

    def add_comment(self, article_id: int, content: str, parent_id: Optional[int] = None) -> Tuple[bool, Any]:
        return self._request(
            "POST",
            f"/api/articles/{article_id}/comments",
            expected=(201,),
            json={"content": content, "parent_id": parent_id},
            error="Failed to post comment"
        )

    def delete_comment(self, comment_id: int) -> Tuple[bool, Any]:
        return self._request("DELETE", f"/api/comments/{comment_id}", error="Delete failed")

    def get_reactions(self, article_id: int) -> Tuple[bool, Any]:
        return self._request("GET", f"/api/articles/{article_id}/reactions")

    def react(self, article_id: int, is_like: bool) -> Tuple[bool, Any]:
        """Like (True) or dislike (False) an article."""
        return self._request(
            "POST",
            f"/api/articles/{article_id}/reactions",
            json={"is_like": is_like},
            error="Reaction failed"
        )

    def remove_reaction(self, article_id: int) -> Tuple[bool, Any]:
        return self._request("DELETE", f"/api/articles/{article_id}/reactions")

    # ============================================
    # Notes and Taxonomy
    # ============================================

    def create_note(
        self,
        content: str,
        article_id: Optional[int] = None,
        channel_id: Optional[int] = None
    ) -> Tuple[bool, Any]:
        return self._request(
            "POST",
            "/api/notes",
            expected=(201,),
            json={"content": content, "article_id": article_id, "channel_id": channel_id},
            error="Failed to save note"
        )

    def list_notes(self) -> Tuple[bool, Any]:
        return self._request("GET", "/api/notes")

    def get_categories(self) -> Tuple[bool, Any]:
        return self._request("GET", "/api/categories", cache=True)

    def get_locations(self) -> Tuple[bool, Any]:
        return self._request("GET", "/api/locations", cache=True)
