"""
Base repository.

Generic CRUD operations for all repositories.
"""

import uuid
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic CRUD operations.

    Provides async database operations for any SQLAlchemy model.
    Repositories never commit; the calling service owns the transaction.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class ReferrerRepository(BaseRepository[Referrer]):
            def __init__(self, session: AsyncSession):
                super().__init__(Referrer, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(
        self, id: uuid.UUID, for_update: bool = False
    ) -> ModelType | None:
        """
        Get entity by ID.

        Args:
            id: Entity ID
            for_update: Use SELECT FOR UPDATE to lock the row

        Returns:
            Entity or None if not found
        """
        if not for_update:
            return await self.session.get(self.model, id)

        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(
        self, for_update: bool = False, **filters: Any
    ) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            for_update: Use SELECT FOR UPDATE to lock the row
            **filters: Column filters

        Returns:
            First matching entity or None
        """
        stmt = select(self.model).filter_by(**filters)
        if for_update:
            stmt = stmt.with_for_update().execution_options(
                populate_existing=True
            )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity.

        Args:
            **data: Entity data

        Returns:
            Created entity (flushed, so constraint violations raise here)
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity
