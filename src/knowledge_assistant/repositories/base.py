"""Base repository shared by the chunk, meeting and token repositories."""

import logging
from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy import Select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from knowledge_assistant.database.models import Base
from knowledge_assistant.exceptions import DatabaseError

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Session-bound repository for one model.

    Repositories flush but never commit; the caller owns the unit of work
    (one file when indexing, one event when syncing, one request otherwise).
    SQLAlchemy failures surface as ``DatabaseError``.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        self.model = model
        self.session = session

    @property
    def model_name(self) -> str:
        return self.model.__name__

    async def fetch_one(self, statement: Select, action: str) -> Optional[ModelType]:
        """Run a select expected to match at most one row."""
        try:
            result = await self.session.execute(statement)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error {action}: {e}")
            raise DatabaseError(f"Failed to retrieve {self.model_name}") from e

    async def fetch_all(self, statement: Select, action: str) -> List[ModelType]:
        try:
            result = await self.session.execute(statement)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error {action}: {e}")
            raise DatabaseError(f"Failed to list {self.model_name}") from e

    async def create(self, **kwargs) -> ModelType:
        """Add a new row and flush it so generated columns are populated."""
        try:
            instance = self.model(**kwargs)
            self.session.add(instance)
            await self.session.flush()
            await self.session.refresh(instance)
            logger.debug(f"Created {self.model_name} {instance.id}")
            return instance
        except SQLAlchemyError as e:
            logger.error(f"Error creating {self.model_name}: {e}")
            raise DatabaseError(f"Failed to create {self.model_name}") from e

    async def save(self, instance: ModelType) -> ModelType:
        """Flush pending changes on an already-loaded instance."""
        try:
            await self.session.flush()
            await self.session.refresh(instance)
            return instance
        except SQLAlchemyError as e:
            logger.error(f"Error updating {self.model_name} {instance.id}: {e}")
            raise DatabaseError(f"Failed to update {self.model_name}") from e
