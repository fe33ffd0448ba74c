"""
Base Repository

Shared lookup, insert, partial update and delete operations for
integer-keyed models.
"""

from typing import Any, Generic, Optional, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from quill.db.models import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository bound to one model class and one request session.

    Subclasses list relationships in `eager_relationships`; every lookup made
    through this class loads them up front, because lazy loading is not
    available on an AsyncSession.
    """

    eager_relationships: Sequence[str] = ()

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    def _select(self):
        stmt = select(self.model)
        for name in self.eager_relationships:
            stmt = stmt.options(selectinload(getattr(self.model, name)))
        return stmt

    async def get_by_id(self, id: int, refresh: bool = False) -> Optional[ModelType]:
        """
        Retrieve a single record by its primary key.

        Args:
            id: Primary key
            refresh: Overwrite attributes of an instance already in the
                identity map (needed after UPDATE statements)

        Returns:
            The model instance or None if not found
        """
        stmt = self._select().where(self.model.id == id)
        if refresh:
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> ModelType:
        """
        Insert a new record and return it with server defaults loaded.

        Raises:
            sqlalchemy.exc.IntegrityError: A unique or foreign key constraint fired
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, id: int, **fields: Any) -> Optional[ModelType]:
        """
        Apply a partial update.

        Only keyword arguments that were passed are written; callers drop
        fields they do not want to touch.

        Returns:
            The refreshed instance, or None if the record doesn't exist
        """
        instance = await self.get_by_id(id)
        if instance is None:
            return None

        for key, value in fields.items():
            setattr(instance, key, value)

        await self.session.flush()
        return await self.get_by_id(id, refresh=True)

    async def delete(self, id: int) -> bool:
        """
        Delete a record by primary key (ORM cascades apply).

        Returns:
            True if deleted, False if not found
        """
        instance = await self.get_by_id(id)
        if instance is None:
            return False

        await self.session.delete(instance)
        await self.session.flush()
        return True
