"""
Dependency Injection

FastAPI dependencies for authentication.
These dependencies are used throughout the application via Depends().
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from quill.config import settings
from quill.core.errors import AuthenticationError
from quill.db.models import User
from quill.db.session import get_db
from quill.services.auth_service import AuthService


def extract_session_token(request: Request) -> Optional[str]:
    """
    Find the session token on a request.

    The session cookie wins; an `Authorization: Bearer <token>` header is
    accepted for non-browser clients.

    Raises:
        AuthenticationError: Authorization header present but malformed
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token

    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    parts = auth_header.split(maxsplit=1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Invalid Authorization header format. Use: Bearer <token>")

    return parts[1]


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Authentication dependency - validates session and returns current user.

    Args:
        request: FastAPI request (cookie or Authorization header)
        db: Database session

    Returns:
        User: Authenticated user object

    Raises:
        AuthenticationError: No session presented
        InvalidSessionError: Malformed or tampered token, or user gone
        SessionExpiredError: Token expired

    Example:
        >>> @app.get("/protected")
        >>> async def protected_route(user: User = Depends(get_current_user)):
        >>>     return {"message": f"Hello {user.username}"}
    """
    token = extract_session_token(request)
    if not token:
        raise AuthenticationError("Not authenticated")

    auth_service = AuthService(db)
    return await auth_service.validate_session(token)


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user, but an absent or unusable session yields None."""
    try:
        token = extract_session_token(request)
        if not token:
            return None
        return await AuthService(db).validate_session(token)
    except AuthenticationError:
        return None


async def get_admin_user(
    user: User = Depends(get_current_user),
) -> User:
    """
    Admin-only authentication dependency.

    Raises:
        HTTPException: 403 Forbidden if user.role != 'admin'
    """
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return user
