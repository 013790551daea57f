"""Read-through cache over the record store, hydrated from the chain on a miss.

Concurrent misses on one key all hydrate, but only the first insert wins; the
others hit the uniqueness constraint, drop their copy and re-read the stored
one. An identity map makes every caller share one in-memory entity per key.
"""
import logging
import weakref
from typing import Generic, Optional, Type, TypeVar

from lpwatch.errors import DuplicateRecordError, EntityNotFoundUpstream
from lpwatch.storage.store import RecordStore

log = logging.getLogger(__name__)

E = TypeVar("E")


class LazyCache(Generic[E]):
    kind: str = "entity"
    model: Type = None

    def __init__(self, store: RecordStore, reader):
        self.store = store
        self.reader = reader
        self.chain_id = reader.chain_id
        self._identity = weakref.WeakValueDictionary()

    async def get(self, key) -> Optional[E]:
        """Stored entity for `key`; never touches the chain."""
        record = await self.store.get(self.model, str(key))
        if record is None:
            self._identity.pop(str(key), None)
            return None
        return await self._materialize(record)

    async def fetch_or_create(self, key) -> E:
        entity = await self.get(key)
        if entity is not None:
            return entity

        try:
            entity = await self._hydrate(key)
        except EntityNotFoundUpstream:
            raise
        except Exception as e:
            raise EntityNotFoundUpstream(self.kind, key, str(e)) from e

        try:
            await self.store.insert(self._to_record(entity))
        except DuplicateRecordError:
            log.debug("[%s-cache] %s stored concurrently, re-reading", self.kind, key)
            stored = await self.get(key)
            if stored is None:
                raise LookupError(f"{self.kind} {key} was stored concurrently but cannot be read back")
            return stored

        log.info("[%s-cache] stored %s", self.kind, key)
        return self._identity.setdefault(str(key), entity)

    async def resolve(self, record) -> E:
        """Build the entity for a stored record, re-hydrating missing dependencies."""
        raise NotImplementedError

    async def save(self, entity: E) -> None:
        await self.store.upsert(self._to_record(entity))

    async def _materialize(self, record) -> E:
        existing = self._identity.get(record.id)
        if existing is not None:
            return existing
        entity = await self.resolve(record)
        return self._identity.setdefault(record.id, entity)

    async def _hydrate(self, key) -> E:
        raise NotImplementedError

    def _to_record(self, entity: E):
        raise NotImplementedError
