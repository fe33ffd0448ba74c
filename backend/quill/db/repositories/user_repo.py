"""
User Repository

Database operations for User model.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.errors import ConflictError
from quill.db.models import User
from quill.db.repositories.base import BaseRepository

# Fields an external identity portal may set on upsert
UPSERT_FIELDS = ("name", "email", "login_method", "role", "last_signed_in")

USER_ROLES = ("user", "admin")


def normalize_email(email: str) -> str:
    """Trim and lowercase an email address for storage and lookup."""
    return email.strip().lower()


class UserRepository(BaseRepository[User]):
    """Repository for User model operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address (normalized before lookup).

        Args:
            email: User's email address

        Returns:
            User instance or None if not found
        """
        result = await self.session.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        """Get user by exact username, or None."""
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def create(self, username: str, email: str, password_hash: str) -> User:
        """
        Create a new password user.

        The caller checks uniqueness beforehand, but that check and this
        insert are not atomic. The unique constraints on username and email
        catch a concurrent registration that slipped in between.

        Args:
            username: Unique username
            email: Unique email (normalized here)
            password_hash: bcrypt hash, never the plaintext

        Returns:
            Created User instance

        Raises:
            ConflictError: Username or email already present
        """
        try:
            return await super().create(
                username=username,
                email=normalize_email(email),
                password_hash=password_hash,
            )
        except IntegrityError as e:
            raise ConflictError("Username or email already registered") from e

    async def upsert_by_external_id(self, open_id: str, **attrs: Any) -> User:
        """
        Insert or update a user keyed by external identity.

        Partial update semantics on conflict:
        - fields not passed are left untouched
        - fields passed as None are cleared
        - last_signed_in is refreshed unless passed explicitly

        Args:
            open_id: External identity key (unique)
            **attrs: Any of name, email, login_method, role, last_signed_in

        Returns:
            The stored User

        Raises:
            ValueError: Unknown field or invalid role
            ConflictError: Email already belongs to another user
        """
        if not open_id:
            raise ValueError("open_id is required for upsert")

        unknown = set(attrs) - set(UPSERT_FIELDS)
        if unknown:
            raise ValueError(f"Cannot upsert fields: {', '.join(sorted(unknown))}")

        values = dict(attrs)
        if values.get("email"):
            values["email"] = normalize_email(values["email"])
        # role is NOT NULL; clearing it means falling back to the default
        if "role" in values and values["role"] is None:
            values["role"] = "user"
        if "role" in values and values["role"] not in USER_ROLES:
            raise ValueError(f"Invalid role: {values['role']}")
        if "last_signed_in" not in values:
            values["last_signed_in"] = datetime.now(timezone.utc)

        dialect = self.session.get_bind().dialect.name
        insert = pg_insert if dialect == "postgresql" else sqlite_insert

        stmt = insert(User).values(open_id=open_id, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[User.open_id],
            set_={**values, "updated_at": func.now()},
        )
        try:
            await self.session.execute(stmt)
        except IntegrityError as e:
            # open_id conflicts are absorbed above; this is another unique column
            raise ConflictError("Email already registered") from e
        await self.session.flush()

        result = await self.session.execute(
            select(User)
            .where(User.open_id == open_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def update_role(self, user_id: int, role: str) -> None:
        """
        Update a user's role.

        Raises:
            ValueError: Invalid role or user not found
        """
        if role not in USER_ROLES:
            raise ValueError(f"Invalid role: {role}")

        result = await self.session.execute(
            update(User).where(User.id == user_id).values(role=role)
        )
        if result.rowcount == 0:
            raise ValueError(f"User {user_id} not found")

        await self.session.flush()
