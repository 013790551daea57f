"""Thin async persistence layer shared by the caches.

One short session per call; records come back detached but fully loaded
(`expire_on_commit=False`), so callers can read them after the session is gone.
"""
import logging
from typing import Any, List, Type

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from lpwatch.errors import DuplicateRecordError

log = logging.getLogger(__name__)


def _primary_key(record) -> str:
    mapper = inspect(type(record))
    return ":".join(str(getattr(record, column.key)) for column in mapper.primary_key)


class RecordStore:
    def __init__(self, session_factory: async_sessionmaker):
        self._sessions = session_factory

    async def get(self, model: Type, pk: Any):
        async with self._sessions() as session:
            return await session.get(model, pk)

    async def find_one(self, model: Type, **criteria):
        async with self._sessions() as session:
            result = await session.execute(select(model).filter_by(**criteria).limit(1))
            return result.scalars().first()

    async def find_all(self, model: Type, **criteria) -> List:
        async with self._sessions() as session:
            result = await session.execute(select(model).filter_by(**criteria))
            return list(result.scalars().all())

    async def count(self, model: Type, **criteria) -> int:
        matching = select(model).filter_by(**criteria).subquery()
        async with self._sessions() as session:
            result = await session.execute(select(func.count()).select_from(matching))
            return result.scalar_one()

    async def insert(self, record):
        """Insert a new row; a key that already exists raises DuplicateRecordError."""
        async with self._sessions() as session:
            session.add(record)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateRecordError(record.__tablename__, _primary_key(record)) from exc
        return record

    async def upsert(self, record):
        async with self._sessions() as session:
            merged = await session.merge(record)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateRecordError(record.__tablename__, _primary_key(record)) from exc
        return merged

    async def delete(self, model: Type, pk: Any) -> bool:
        async with self._sessions() as session:
            record = await session.get(model, pk)
            if record is None:
                return False
            await session.delete(record)
            await session.commit()
        log.debug("[store] deleted %s %s", model.__tablename__, pk)
        return True

    async def delete_all(self, model: Type, **criteria) -> int:
        async with self._sessions() as session:
            result = await session.execute(sa_delete(model).filter_by(**criteria))
            removed = result.rowcount or 0
            await session.commit()
        return removed
