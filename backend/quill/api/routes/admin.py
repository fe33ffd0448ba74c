"""
Admin User Management API Endpoints

Admin-only role management.
"""

from typing import Literal

from fastapi import APIRouter, Depends
from loguru import logger
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.errors import ResourceNotFoundError
from quill.db.models import User
from quill.db.repositories.user_repo import UserRepository
from quill.db.session import get_db
from quill.dependencies import get_admin_user
from quill.schemas.auth import MeResponse

router = APIRouter(prefix="/api/admin/users", tags=["admin", "users"])


class RoleUpdateRequest(BaseModel):
    role: Literal["user", "admin"]


@router.patch("/{user_id}/role", response_model=MeResponse)
async def update_user_role(
    user_id: int,
    body: RoleUpdateRequest,
    admin: User = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
) -> MeResponse:
    """
    Change a user's role (admin only).

    Raises:
        HTTPException(403): Caller is not an admin
        ResourceNotFoundError: User not found
    """
    repo = UserRepository(db)
    if await repo.get_by_id(user_id) is None:
        raise ResourceNotFoundError("User not found")

    await repo.update_role(user_id, body.role)
    await db.commit()

    logger.info(f"Admin {admin.id} set role of user {user_id} to {body.role}")

    user = await repo.get_by_id(user_id, refresh=True)
    return MeResponse.model_validate(user)
