"""
Security Utilities

Functions for password hashing and signed session tokens.
Used by the authentication service for credential and session management.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt

from quill.config import settings
from quill.core.errors import InvalidSessionError, SessionExpiredError


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """
    Hash password using bcrypt.

    Bcrypt automatically handles salt generation, so each hash
    of the same password will be different.

    Args:
        password: Plain text password to hash
        rounds: Cost factor (defaults to settings.BCRYPT_ROUNDS)

    Returns:
        Hashed password string (includes salt and cost factor)

    Example:
        >>> hash_password("mypassword123")
        '$2b$12$...'
    """
    password_bytes = password.encode('utf-8')

    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS))

    return hashed.decode('utf-8')


def verify_password(plain: str, hashed: str) -> bool:
    """
    Verify password against hashed version.

    Uses bcrypt's constant-time comparison to prevent timing attacks.
    A stored value that is not a bcrypt hash counts as a mismatch.

    Args:
        plain: Plain text password to check
        hashed: Previously hashed password (from database)

    Returns:
        True if password matches, False otherwise

    Example:
        >>> hashed = hash_password("mypassword")
        >>> verify_password("mypassword", hashed)
        True
        >>> verify_password("wrongpassword", hashed)
        False
    """
    if not hashed:
        return False

    try:
        return bcrypt.checkpw(plain.encode('utf-8'), hashed.encode('utf-8'))
    except ValueError:
        # Malformed salt in the stored hash
        return False


async def hash_password_async(password: str) -> str:
    """Run hash_password in a worker thread so the event loop keeps serving requests."""
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(plain: str, hashed: str) -> bool:
    """Run verify_password in a worker thread."""
    return await asyncio.to_thread(verify_password, plain, hashed)


def issue_session_token(user_id: int, ttl: Optional[timedelta] = None) -> str:
    """
    Issue a signed, self-contained session token for a user.

    The token is a JWT carrying the user id as subject plus issue and expiry
    timestamps, signed with SECRET_KEY. Nothing is stored server-side, so a
    token stays valid until it expires even after logout.

    Args:
        user_id: ID of the authenticated user
        ttl: Lifetime (defaults to SESSION_EXPIRES_DAYS)

    Returns:
        Encoded token string

    Example:
        >>> token = issue_session_token(42)
        >>> verify_session_token(token)
        42
    """
    now = datetime.now(timezone.utc)
    if ttl is None:
        ttl = timedelta(days=settings.SESSION_EXPIRES_DAYS)

    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.SESSION_ALGORITHM)


def verify_session_token(token: str) -> int:
    """
    Verify a session token and return the user id it was issued for.

    The signature is checked before the expiry claim, so a tampered token is
    always reported as invalid even when it is also expired.

    Args:
        token: Encoded token from the session cookie

    Returns:
        User ID (subject)

    Raises:
        InvalidSessionError: Malformed token, bad signature, missing claims
        SessionExpiredError: Valid signature but expiry has passed
    """
    if not token:
        raise InvalidSessionError()

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.SESSION_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise SessionExpiredError()
    except jwt.InvalidTokenError:
        raise InvalidSessionError()

    subject = payload["sub"]
    if not isinstance(subject, str) or not subject.isdigit():
        raise InvalidSessionError()

    return int(subject)
