"""
Comment Repository

Database operations for Comment model.
"""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from quill.db.models import Comment
from quill.db.repositories.base import BaseRepository


class CommentRepository(BaseRepository[Comment]):
    """Repository for Comment model operations."""

    eager_relationships = ("author",)

    def __init__(self, session: AsyncSession):
        super().__init__(Comment, session)

    async def create(self, content: str, author_id: int, blog_id: int) -> Comment:
        """
        Create a comment on a blog post.

        Returns:
            Created Comment with author loaded
        """
        comment = await super().create(content=content, author_id=author_id, blog_id=blog_id)
        return await self.get_by_id(comment.id, refresh=True)

    async def list_by_blog(self, blog_id: int, limit: int = 100, offset: int = 0) -> List[Comment]:
        """
        List comments for a blog post, newest first.

        Args:
            blog_id: Blog post ID
            limit: Maximum number of comments
            offset: Number of comments to skip

        Returns:
            List of Comment instances
        """
        result = await self.session.execute(
            self._select()
            .where(Comment.blog_id == blog_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
