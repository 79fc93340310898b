"""Authentication service with business logic."""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from newsroom.models.user import User
from newsroom.models.schemas import UserCreate, UserLogin
from newsroom.storage import Storage, DuplicateRecord
from newsroom.utils.security import (
    hash_password,
    verify_password,
    create_access_token,
    decode_supabase_token,
    validate_password_strength,
)
from newsroom.utils.validators import validate_email, validate_username, username_from_email
from newsroom.config import settings

logger = logging.getLogger(__name__)


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    def register_user(storage: Storage, user_data: UserCreate) -> Tuple[Optional[User], Optional[str]]:
        """
        Register a new user.

        Args:
            storage: Storage backend
            user_data: User registration data

        Returns:
            Tuple of (user, error_message)
        """
        email = str(user_data.email) if user_data.email else None

        is_valid, error = validate_email(email)
        if not is_valid:
            return None, error

        is_valid, error = validate_username(user_data.username)
        if not is_valid:
            return None, error

        is_valid, error = validate_password_strength(user_data.password)
        if not is_valid:
            return None, error

        if email and storage.get_user_by_email(email):
            return None, "Email already registered"

        if storage.get_user_by_username(user_data.username):
            return None, "Username already taken"

        try:
            new_user = storage.create_user(
                username=user_data.username,
                hashed_password=hash_password(user_data.password),
                email=email,
                description=user_data.description,
            )
        except DuplicateRecord:
            return None, "Username already taken"

        logger.info("Registered user %s", new_user.username)
        return new_user, None

    @staticmethod
    def authenticate_user(storage: Storage, login_data: UserLogin) -> Tuple[Optional[User], Optional[str]]:
        """
        Authenticate a user with username (or email) and password.

        Returns:
            Tuple of (user, error_message)
        """
        user = storage.get_user_by_username(login_data.username)
        if user is None and "@" in login_data.username:
            user = storage.get_user_by_email(login_data.username)

        if not user:
            return None, "Invalid credentials"

        if not user.is_active:
            return None, "Account is deactivated"

        if not verify_password(login_data.password, user.hashed_password):
            return None, "Invalid credentials"

        user = storage.update_user(user.id, last_login=datetime.utcnow())
        return user, None

    @staticmethod
    def create_user_session(
        storage: Storage,
        user: User,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> str:
        """
        Create a new user session and JWT token.

        Returns:
            JWT access token
        """
        token_data = {
            "sub": str(user.id),
            "username": user.username
        }
        access_token = create_access_token(token_data)

        expires_at = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        storage.create_session(
            user_id=user.id,
            session_token=access_token,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        return access_token

    @staticmethod
    def validate_session(storage: Storage, token: str) -> Tuple[Optional[User], Optional[str]]:
        """
        Validate a session token.

        Returns:
            Tuple of (user, error_message)
        """
        session = storage.get_session(token)

        if not session:
            return None, "Invalid session"

        if session.expires_at < datetime.utcnow():
            storage.delete_session(token)
            return None, "Session expired"

        storage.touch_session(token)

        user = storage.get_user(session.user_id)
        if not user or not user.is_active:
            return None, "User not found or inactive"

        return user, None

    @staticmethod
    def logout_user(storage: Storage, token: str) -> bool:
        """Logout user by deleting session. Returns False if there was no session."""
        return storage.delete_session(token)

    @staticmethod
    def cleanup_expired_sessions(storage: Storage) -> int:
        """
        Clean up expired sessions.

        Returns:
            Number of sessions deleted
        """
        count = storage.cleanup_expired_sessions()
        if count:
            logger.info("Removed %d expired sessions", count)
        return count

    @staticmethod
    def supabase_login(storage: Storage, supabase_token: str) -> Tuple[Optional[User], Optional[str]]:
        """
        Resolve a Supabase access token to a local user, creating one on first sign-in.

        Returns:
            Tuple of (user, error_message)
        """
        payload = decode_supabase_token(supabase_token)
        if payload is None:
            return None, "Invalid Supabase token"

        supabase_uid = payload["sub"]
        email = payload.get("email")

        user = storage.get_user_by_supabase_uid(supabase_uid)

        if user is None and email:
            # Link an existing local account registered with the same email
            user = storage.get_user_by_email(email)
            if user is not None:
                if not user.is_active:
                    return None, "Account is deactivated"
                if user.supabase_uid is not None:
                    logger.warning("Refused Supabase link for user %s, already linked elsewhere", user.id)
                    return None, "Email is linked to a different Supabase account"
                user = storage.update_user(user.id, supabase_uid=supabase_uid)

        if user is None:
            username = username_from_email(
                email or supabase_uid,
                lambda name: storage.get_user_by_username(name) is not None
            )
            user = storage.create_user(username=username, email=email, supabase_uid=supabase_uid)
            logger.info("Created user %s from Supabase identity", username)

        if not user.is_active:
            return None, "Account is deactivated"

        user = storage.update_user(user.id, last_login=datetime.utcnow())
        return user, None
