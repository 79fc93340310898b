"""API routers."""

from newsroom.routers import auth, users, channels, articles, comments, notes, taxonomy, health

__all__ = ["auth", "users", "channels", "articles", "comments", "notes", "taxonomy", "health"]
