import logging

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from lpwatch.config.settings import DATABASE_URL
from lpwatch.storage.base import Base
# registers the tables on Base.metadata
from lpwatch.storage.models import pool, position, token, watch  # noqa: F401

log = logging.getLogger(__name__)


def make_engine(url: str = DATABASE_URL) -> AsyncEngine:
    if url.startswith("sqlite"):
        # one connection per session: a file database does not pool well across tasks
        return create_async_engine(url, poolclass=NullPool)
    return create_async_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create missing tables; existing ones are left untouched."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    log.info("[db] tables ready on %s", engine.url.render_as_string(hide_password=True))
