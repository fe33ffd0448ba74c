"""
Blog Repository

Database operations for Blog model.
"""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from quill.db.models import Blog
from quill.db.repositories.base import BaseRepository


class BlogRepository(BaseRepository[Blog]):
    """Repository for Blog model operations. Author is always eager-loaded."""

    eager_relationships = ("author",)

    def __init__(self, session: AsyncSession):
        super().__init__(Blog, session)

    async def create(self, title: str, content: str, author_id: int) -> Blog:
        """
        Create a new blog post.

        Args:
            title: Post title
            content: Post body
            author_id: ID of the authenticated author

        Returns:
            Created Blog with author loaded
        """
        blog = await super().create(title=title, content=content, author_id=author_id)
        return await self.get_by_id(blog.id, refresh=True)

    async def list_recent(self, limit: int = 50, offset: int = 0) -> List[Blog]:
        """
        List blog posts, newest first.

        Args:
            limit: Maximum number of posts to return
            offset: Number of posts to skip

        Returns:
            List of Blog instances
        """
        result = await self.session.execute(
            self._select()
            .order_by(Blog.created_at.desc(), Blog.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def search_by_title(self, query: str, limit: int = 50) -> List[Blog]:
        """
        Find posts whose title contains the query (bound parameter, no SQL injection).

        LIKE wildcards typed by the user are escaped.
        """
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        result = await self.session.execute(
            self._select()
            .where(Blog.title.ilike(f"%{escaped}%", escape="\\"))
            .order_by(Blog.created_at.desc(), Blog.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def update_content(
        self, blog_id: int, title: Optional[str] = None, content: Optional[str] = None
    ) -> Optional[Blog]:
        """
        Update title and/or content; None means "leave unchanged".

        Returns:
            Updated Blog or None if not found
        """
        fields = {}
        if title is not None:
            fields["title"] = title
        if content is not None:
            fields["content"] = content

        if not fields:
            return await self.get_by_id(blog_id)

        return await self.update(blog_id, **fields)
