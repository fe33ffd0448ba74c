"""
Resource Ownership Guard

Authorization check applied before blog and comment mutations.
"""

from typing import Optional, Protocol

from loguru import logger

from quill.core.errors import UnauthorizedError
from quill.db.models import User


class OwnedResource(Protocol):
    id: int
    author_id: int


def ensure_owner(
    resource: Optional[OwnedResource],
    user: User,
    action: str,
    kind: str,
    allow_admin: bool = False,
) -> OwnedResource:
    """
    Allow a mutation only for the resource's author.

    A missing resource is rejected the same way as a foreign one, so the
    mutation paths do not reveal which IDs exist.

    Args:
        resource: Blog or Comment (None if lookup found nothing)
        user: Authenticated user
        action: Verb for the error message ("edit", "delete")
        kind: Resource noun for the error message ("blogs", "comments")
        allow_admin: Admins may act on resources they don't own (moderation)

    Returns:
        The resource, for chaining

    Raises:
        UnauthorizedError: User is neither the author nor an allowed admin
    """
    if resource is not None:
        if resource.author_id == user.id:
            return resource
        if allow_admin and user.is_admin:
            logger.info(f"Admin {user.id} allowed to {action} {kind} {resource.id} owned by {resource.author_id}")
            return resource

    logger.warning(
        f"User {user.id} denied: {action} {kind} "
        f"{resource.id if resource is not None else '<missing>'}"
    )
    raise UnauthorizedError(f"Unauthorized: You can only {action} your own {kind}")
