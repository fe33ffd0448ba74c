"""
Authentication API Endpoints

Provides endpoints for registration, login, logout, external identity
sign-in and current-user lookup. The session token travels in an HttpOnly
cookie whose attributes come from quill.core.cookies.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.cookies import clear_session_cookie, set_session_cookie
from quill.db.models import User
from quill.db.session import get_db
from quill.dependencies import get_optional_user
from quill.schemas.auth import (
    ExternalLoginRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    UserSummary,
)
from quill.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["authentication"])


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Register new user account.

    Args:
        body: Registration data (username, email, password)
        db: Database session

    Returns:
        MessageResponse (201)

    Raises:
        ValidationError (400): Username/email/password rules violated
        ConflictError (400): Email already registered or username taken

    Example:
        >>> POST /api/auth/register
        >>> {"username": "alice1", "email": "a@example.com", "password": "password123"}
        >>> Response: {"message": "User registered successfully"}
    """
    auth_service = AuthService(db)
    await auth_service.register_user(body.username, body.email, body.password)
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=LoginResponse)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate user and set the session cookie.

    Args:
        request: FastAPI request (protocol/host decide cookie attributes)
        response: Response the cookie is attached to
        body: Login credentials (email, password)
        db: Database session

    Returns:
        LoginResponse with user summary

    Raises:
        ValidationError (400): Email or password missing
        InvalidCredentialsError (401): Unknown email or wrong password

    Example:
        >>> POST /api/auth/login
        >>> {"email": "a@example.com", "password": "password123"}
        >>> Response: {"message": "Login successful", "user": {"id": 1, "username": "alice1", ...}}
    """
    auth_service = AuthService(db)
    user, token = await auth_service.login(body.email, body.password)

    set_session_cookie(response, request, token)

    return LoginResponse(message="Login successful", user=UserSummary.model_validate(user))


@router.post("/external", response_model=LoginResponse)
async def external_login(
    request: Request,
    response: Response,
    body: ExternalLoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Sign in with an assertion from the external identity portal.

    Only available when IDENTITY_PROVIDER=external (404 otherwise).
    """
    auth_service = AuthService(db)
    user, token = await auth_service.login_external(body.assertion)

    set_session_cookie(response, request, token)

    return LoginResponse(message="Login successful", user=UserSummary.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request, response: Response) -> MessageResponse:
    """
    Clear the session cookie.

    Always succeeds, with or without a session. The token itself stays
    valid until it expires; only the client copy is removed.
    """
    clear_session_cookie(response, request)
    return MessageResponse(message="Logout successful")


@router.get("/me", response_model=Optional[MeResponse])
async def get_current_user_info(
    user: Optional[User] = Depends(get_optional_user),
) -> Optional[MeResponse]:
    """
    Get the signed-in user, or null when there is no valid session.

    Example:
        >>> GET /api/auth/me
        >>> Response: {"id": 1, "username": "alice1", "email": "a@example.com", "role": "user", "name": null}
    """
    if user is None:
        return None
    return MeResponse.model_validate(user)
