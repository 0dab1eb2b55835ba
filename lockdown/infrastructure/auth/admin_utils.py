"""Operator credentials for the administrative HTTP surface.

Env vars:
    ADMIN_USERNAME       – operator login name (case-insensitive)
    ADMIN_PASSWORD_HASH  – bcrypt hash of the operator password
"""
import os

from lockdown.infrastructure.auth.password import verify_password


def configured_admin_username() -> str:
    """Return the normalized admin username, or '' when unset."""
    return os.environ.get("ADMIN_USERNAME", "").strip().lower()


def is_admin_username(username: str | None) -> bool:
    """Return True if *username* is the configured admin account."""
    if not username:
        return False
    expected = configured_admin_username()
    return bool(expected) and username.strip().lower() == expected


def verify_admin_credentials(username: str, password: str) -> bool:
    """Check a login against ADMIN_USERNAME / ADMIN_PASSWORD_HASH."""
    stored_hash = os.environ.get("ADMIN_PASSWORD_HASH", "").strip()
    if not stored_hash:
        return False
    # Always run bcrypt so unknown usernames take as long as wrong passwords.
    password_ok = verify_password(password, stored_hash)
    return is_admin_username(username) and password_ok
