"""
Blog API Endpoints

Public reads, authenticated creation, and author-only update/delete.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.errors import ResourceNotFoundError
from quill.db.models import User
from quill.db.repositories.blog_repo import BlogRepository
from quill.db.session import get_db
from quill.dependencies import get_current_user
from quill.schemas.blog import (
    BlogCreateRequest,
    BlogResponse,
    BlogUpdateRequest,
    DeleteResponse,
)
from quill.services.ownership import ensure_owner

router = APIRouter(prefix="/api/blogs", tags=["blogs"])


@router.post("", response_model=BlogResponse, status_code=status.HTTP_201_CREATED)
async def create_blog(
    body: BlogCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BlogResponse:
    """
    Create a blog post authored by the signed-in user.

    Example:
        >>> POST /api/blogs
        >>> Body: {"title": "Hello", "content": "World"}
        >>> Response: {"id": 1, "title": "Hello", "author_id": 1, "author": {"id": 1, "username": "alice1"}, ...}
    """
    repo = BlogRepository(db)
    blog = await repo.create(title=body.title, content=body.content, author_id=current_user.id)
    await db.commit()

    logger.info(f"Created blog {blog.id} for user {current_user.id}")

    return BlogResponse.model_validate(blog)


@router.get("", response_model=List[BlogResponse])
async def list_blogs(
    limit: int = Query(50, ge=1, le=100, description="Maximum number of posts to return"),
    offset: int = Query(0, ge=0, description="Number of posts to skip"),
    db: AsyncSession = Depends(get_db),
) -> List[BlogResponse]:
    """List blog posts with author info, newest first."""
    repo = BlogRepository(db)
    blogs = await repo.list_recent(limit=limit, offset=offset)
    return [BlogResponse.model_validate(b) for b in blogs]


@router.get("/search", response_model=List[BlogResponse])
async def search_blogs(
    query: str = Query(..., min_length=1, description="Text to look for in titles"),
    db: AsyncSession = Depends(get_db),
) -> List[BlogResponse]:
    """Search blog posts by title."""
    repo = BlogRepository(db)
    blogs = await repo.search_by_title(query)
    return [BlogResponse.model_validate(b) for b in blogs]


@router.get("/{blog_id}", response_model=BlogResponse)
async def get_blog(
    blog_id: int,
    db: AsyncSession = Depends(get_db),
) -> BlogResponse:
    """
    Get a single blog post.

    Raises:
        ResourceNotFoundError: Blog not found
    """
    repo = BlogRepository(db)
    blog = await repo.get_by_id(blog_id)
    if blog is None:
        raise ResourceNotFoundError("Blog not found")
    return BlogResponse.model_validate(blog)


@router.patch("/{blog_id}", response_model=BlogResponse)
async def update_blog(
    blog_id: int,
    body: BlogUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BlogResponse:
    """
    Update title and/or content. Author only.

    Raises:
        UnauthorizedError: Blog missing or owned by someone else
    """
    repo = BlogRepository(db)
    ensure_owner(await repo.get_by_id(blog_id), current_user, "edit", "blogs")

    blog = await repo.update_content(blog_id, title=body.title, content=body.content)
    await db.commit()

    logger.info(f"Updated blog {blog_id} for user {current_user.id}")

    return BlogResponse.model_validate(blog)


@router.delete("/{blog_id}", response_model=DeleteResponse)
async def delete_blog(
    blog_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    """
    Delete a blog post and its comments. Author only.

    Raises:
        UnauthorizedError: Blog missing or owned by someone else
    """
    repo = BlogRepository(db)
    ensure_owner(await repo.get_by_id(blog_id), current_user, "delete", "blogs")

    await repo.delete(blog_id)
    await db.commit()

    logger.info(f"Deleted blog {blog_id} for user {current_user.id}")

    return DeleteResponse()
