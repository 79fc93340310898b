"""Password hashing and JWT helpers."""

import re
import uuid
from datetime import datetime, timedelta
from typing import Optional, Tuple

from jose import jwt, JWTError
from passlib.context import CryptContext

from newsroom.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

SUPABASE_AUDIENCE = "authenticated"


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check a password against a stored hash; users without a local password never match."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to include (usually sub and username)
        expires_delta: Lifetime of the token, ACCESS_TOKEN_EXPIRE_MINUTES by default

    Returns:
        Encoded JWT
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    # jti keeps tokens issued within the same second distinct
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify an access token. Returns None when invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    if payload.get("sub") is None:
        return None
    return payload


def supabase_issuer() -> Optional[str]:
    """Expected "iss" claim, e.g. https://abc.supabase.co/auth/v1; None skips the check."""
    if not settings.SUPABASE_URL:
        return None
    return f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1"


def decode_supabase_token(token: str) -> Optional[dict]:
    """
    Verify an access token issued by Supabase Auth.

    Supabase signs its tokens with the project's JWT secret (HS256) and the
    audience "authenticated". With SUPABASE_URL set, the issuer must be that
    project's auth endpoint. Returns None when the token does not verify.
    """
    if not settings.SUPABASE_JWT_SECRET:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            audience=SUPABASE_AUDIENCE,
            issuer=supabase_issuer()
        )
    except JWTError:
        return None

    if not payload.get("sub"):
        return None
    return payload


def validate_password_strength(password: str) -> Tuple[bool, str]:
    """
    Validate password strength.

    Requirements:
    - At least 8 characters
    - One uppercase letter, one lowercase letter, one digit
    - One special character

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not password or len(password) < 8:
        return False, "Password must be at least 8 characters long"

    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"

    if not re.search(r"[a-z]", password):
        return False, "Password must contain at least one lowercase letter"

    if not re.search(r"\d", password):
        return False, "Password must contain at least one digit"

    if not re.search(r"[^A-Za-z0-9]", password):
        return False, "Password must contain at least one special character"

    return True, ""
