"""Account field validation shared by registration and the Supabase bridge."""

import re
from typing import Callable, Optional, Tuple

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
USERNAME_PATTERN = re.compile(r'^[a-zA-Z][a-zA-Z0-9_]*$')

USERNAME_MIN, USERNAME_MAX = 3, 50


def validate_email(email: Optional[str]) -> Tuple[bool, str]:
    """
    Check an optional email address.

    Returns:
        Tuple of (is_valid, error_message); a missing email is valid
    """
    if not email:
        return True, ""

    if len(email) > 255:
        return False, "Email address must be less than 255 characters"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email address format"

    return True, ""


def validate_username(username: str) -> Tuple[bool, str]:
    """
    Usernames are 3-50 characters of letters, digits and underscores,
    starting with a letter.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not username:
        return False, "Username is required"

    if not USERNAME_MIN <= len(username) <= USERNAME_MAX:
        return False, f"Username must be between {USERNAME_MIN} and {USERNAME_MAX} characters"

    if not username[0].isalpha():
        return False, "Username must start with a letter"

    if not USERNAME_PATTERN.match(username):
        return False, "Username can only contain letters, numbers, and underscores"

    return True, ""


def username_from_email(email: Optional[str], is_taken: Callable[[str], bool]) -> str:
    """
    Derive a valid, unused username from an email address.

    The local part is reduced to letters, digits and underscores, prefixed
    with "user" when it does not start with a letter, padded to three
    characters, and suffixed with a counter until is_taken returns False.
    """
    local = (email or "").split("@")[0]
    base = re.sub(r'[^a-zA-Z0-9_]', '_', local).strip('_')
    if not base or not base[0].isalpha():
        base = f"user{base}"
    base = base[:40].ljust(USERNAME_MIN, '_')

    candidate = base
    suffix = 1
    while is_taken(candidate):
        suffix += 1
        candidate = f"{base}{suffix}"
    return candidate
