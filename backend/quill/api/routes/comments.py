"""
Comment API Endpoints

Comments are listed and created under their blog post; deletion requires
the comment's author or an admin.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.errors import ResourceNotFoundError
from quill.db.models import User
from quill.db.repositories.blog_repo import BlogRepository
from quill.db.repositories.comment_repo import CommentRepository
from quill.db.session import get_db
from quill.dependencies import get_current_user
from quill.schemas.blog import CommentCreateRequest, CommentResponse, DeleteResponse
from quill.services.ownership import ensure_owner

router = APIRouter(tags=["comments"])


@router.post(
    "/api/blogs/{blog_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    blog_id: int,
    body: CommentCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    """
    Comment on a blog post as the signed-in user.

    Raises:
        ResourceNotFoundError: Blog not found
    """
    if await BlogRepository(db).get_by_id(blog_id) is None:
        raise ResourceNotFoundError("Blog not found")

    repo = CommentRepository(db)
    comment = await repo.create(content=body.content, author_id=current_user.id, blog_id=blog_id)
    await db.commit()

    logger.info(f"Created comment {comment.id} on blog {blog_id} for user {current_user.id}")

    return CommentResponse.model_validate(comment)


@router.get("/api/blogs/{blog_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    blog_id: int,
    limit: int = Query(100, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> List[CommentResponse]:
    """List comments for a blog post, newest first."""
    repo = CommentRepository(db)
    comments = await repo.list_by_blog(blog_id, limit=limit, offset=offset)
    return [CommentResponse.model_validate(c) for c in comments]


@router.delete("/api/comments/{comment_id}", response_model=DeleteResponse)
async def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    """
    Delete a comment. Author or admin only.

    Raises:
        UnauthorizedError: Comment missing, or caller is neither author nor admin
    """
    repo = CommentRepository(db)
    ensure_owner(
        await repo.get_by_id(comment_id), current_user, "delete", "comments", allow_admin=True
    )

    await repo.delete(comment_id)
    await db.commit()

    logger.info(f"Deleted comment {comment_id} by user {current_user.id}")

    return DeleteResponse()
