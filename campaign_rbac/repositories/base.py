"""
Base CRUD Repository Pattern
Generic repository with common database operations
"""

from typing import Any, Dict, Generic, Optional, Type, TypeVar
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import structlog

from campaign_rbac.core.database import Base

logger = structlog.get_logger()

ModelType = TypeVar("ModelType", bound=Base)


class CRUDBase(Generic[ModelType]):
    """
    Base CRUD repository with generic database operations
    """

    def __init__(self, model: Type[ModelType]):
        """
        Initialize CRUD repository

        Args:
            model: SQLAlchemy model class
        """
        self.model = model

    async def get(self, db: AsyncSession, id: int) -> Optional[ModelType]:
        """
        Get a single record by ID

        Args:
            db: Database session
            id: Record ID

        Returns:
            Model instance or None
        """
        try:
            result = await db.execute(select(self.model).where(self.model.id == id))
            record = result.scalar_one_or_none()

            if record:
                logger.debug("Record retrieved", model=self.model.__name__, id=id)
            else:
                logger.debug("Record not found", model=self.model.__name__, id=id)

            return record

        except Exception as e:
            logger.error("Error retrieving record", model=self.model.__name__, id=id, error=str(e))
            raise

    async def create(
        self,
        db: AsyncSession,
        *,
        obj_in: Dict[str, Any],
        commit: bool = True
    ) -> ModelType:
        """
        Create a new record

        Args:
            db: Database session
            obj_in: Column values for the new record
            commit: Whether to commit the transaction

        Returns:
            Created model instance
        """
        try:
            db_obj = self.model(**obj_in)

            db.add(db_obj)

            if commit:
                await db.commit()
                await db.refresh(db_obj)
            else:
                await db.flush()

            logger.info("Record created", model=self.model.__name__, id=db_obj.id)
            return db_obj

        except Exception as e:
            if commit:
                await db.rollback()
            logger.error("Error creating record", model=self.model.__name__, error=str(e))
            raise


class NamedCRUDBase(CRUDBase[ModelType]):
    """Repository for models identified by a unique ``name`` column"""

    async def get_by_name(self, db: AsyncSession, name: str) -> Optional[ModelType]:
        result = await db.execute(select(self.model).where(self.model.name == name))
        return result.scalar_one_or_none()
