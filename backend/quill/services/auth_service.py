"""
Authentication Service

Business logic for user registration, sign-in and session validation.
Uses UserRepository for storage and the configured IdentityProvider to
resolve credentials.
"""

from typing import Any, Mapping, Tuple

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from quill.config import Settings, settings as default_settings
from quill.core.errors import (
    ConflictError,
    InvalidSessionError,
    ResourceNotFoundError,
    ValidationError,
)
from quill.core.security import hash_password_async, issue_session_token, verify_session_token
from quill.core.timeouts import run_bounded
from quill.db.models import User
from quill.db.repositories.user_repo import UserRepository
from quill.services.identity import IdentityProvider, get_identity_provider

USERNAME_MIN_LENGTH = 4
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 8
# bcrypt only accepts this many input bytes
PASSWORD_MAX_BYTES = 72


def validate_registration(username: str, email: str, password: str) -> None:
    """
    Check registration input.

    Raises:
        ValidationError: First rule that fails, in the order username, email, password
    """
    if not username or not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"Username must be between {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters"
        )

    if not email or "@" not in email:
        raise ValidationError("Invalid email")

    if not password or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")

    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")


class AuthService:
    """
    Business logic for authentication and session management.

    Handles:
    - Registration: validate, check uniqueness, hash, persist
    - Sign-in through the configured identity provider, issuing a session token
    - Session validation for protected requests

    Sessions are self-contained signed tokens; there is no server-side
    session row, so logout is purely a cookie operation in the route layer.
    """

    def __init__(self, db: AsyncSession, config: Settings = default_settings):
        """
        Initialize auth service with database session.

        Args:
            db: SQLAlchemy async session for database operations
            config: Application settings
        """
        self.db = db
        self.settings = config
        self.user_repo = UserRepository(db)
        self.identity_provider: IdentityProvider = get_identity_provider(config, self.user_repo)

    @property
    def timeout(self) -> float:
        return self.settings.AUTH_OPERATION_TIMEOUT_SECONDS

    def _require_provider(self, name: str) -> None:
        if self.identity_provider.name != name:
            raise ResourceNotFoundError(f"{name.capitalize()} sign-in is not enabled")

    async def register_user(self, username: str, email: str, password: str) -> User:
        """
        Register new user with username, email and password.

        Steps:
        1. Validate input
        2. Check email, then username, is not taken
        3. Hash password
        4. Create user in database

        Args:
            username: 4-20 characters
            email: Must contain "@" (stored lowercased)
            password: At least 8 characters

        Returns:
            Created User object

        Raises:
            ValidationError: Invalid input
            ConflictError: Email already registered / username already taken
            OperationTimeoutError: Hashing or storage exceeded its bound

        Example:
            >>> user = await auth_service.register_user("alice1", "a@example.com", "password123")
            >>> user.username
            'alice1'
        """
        self._require_provider("password")

        username = (username or "").strip()
        email = (email or "").strip()
        validate_registration(username, email, password)

        if await run_bounded(self.user_repo.get_by_email(email), self.timeout, "User lookup"):
            raise ConflictError("Email already registered")

        if await run_bounded(self.user_repo.get_by_username(username), self.timeout, "User lookup"):
            raise ConflictError("Username already taken")

        password_hash = await run_bounded(hash_password_async(password), self.timeout, "Password hashing")

        user = await run_bounded(
            self.user_repo.create(username=username, email=email, password_hash=password_hash),
            self.timeout,
            "User creation",
        )
        await self.db.commit()

        logger.info(f"Registered user {user.id}")
        return user

    async def _sign_in(self, provider: str, credentials: Mapping[str, Any]) -> Tuple[User, str]:
        self._require_provider(provider)

        user = await self.identity_provider.authenticate(credentials)
        await self.db.commit()

        token = issue_session_token(user.id)
        logger.info(f"User {user.id} signed in via {provider}")
        return user, token

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Authenticate user and issue a session token.

        Steps:
        1. Look up user by email
        2. Verify password
        3. Issue signed session token

        Args:
            email: User email
            password: Plain password

        Returns:
            (user, token) tuple; the route puts the token in the session cookie

        Raises:
            ValidationError: Email or password missing
            InvalidCredentialsError: Unknown email or wrong password (same message)
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        return await self._sign_in("password", {"email": email.strip(), "password": password})

    async def login_external(self, assertion: str) -> Tuple[User, str]:
        """
        Sign in with an identity portal assertion, creating the user on first login.

        Raises:
            AuthenticationError: Assertion rejected
        """
        return await self._sign_in("external", {"assertion": assertion})

    async def validate_session(self, token: str) -> User:
        """
        Validate session token and return user.

        Args:
            token: Session token from cookie or Authorization header

        Returns:
            User object if session valid

        Raises:
            InvalidSessionError: Malformed/tampered token or user no longer exists
            SessionExpiredError: Token expired
        """
        user_id = verify_session_token(token)

        user = await run_bounded(self.user_repo.get_by_id(user_id), self.timeout, "User lookup")
        if user is None:
            raise InvalidSessionError("User not found")

        return user
