"""Base repository: session handling, scoped transactions and error wrapping."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from assethub.infrastructure.exceptions import MetadataStoreError
from assethub.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with get/create/flush helpers and transaction().

    Database errors raised inside db_errors() surface as MetadataStoreError;
    domain exceptions pass through untouched.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    @asynccontextmanager
    async def db_errors(self, operation: str) -> AsyncIterator[None]:
        """Wrap SQLAlchemy failures for one repository operation."""
        try:
            yield
        except SQLAlchemyError as e:
            raise MetadataStoreError(operation, str(e)) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Scoped transaction: SAVEPOINT when one is already open, else a new transaction.

        Every write inside the block is rolled back when the block raises.
        """
        async with self.db_errors("transaction"):
            if self.db.in_transaction():
                async with self.db.begin_nested():
                    yield
            else:
                async with self.db.begin():
                    yield

    async def _get_orm(self, entity_id: str) -> ModelType | None:
        """Return a single record by primary key, or None."""
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def _add(self, obj: ModelType) -> ModelType:
        """Persist a new record and load server defaults."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def _save(self, obj: ModelType) -> ModelType:
        """Flush changes on an attached record and reload it."""
        await self.db.flush()
        await self.db.refresh(obj)
        return obj
