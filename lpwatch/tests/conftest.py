import asyncio
import pathlib

import pytest
import pytest_asyncio
from dotenv import load_dotenv

from lpwatch.cache.pool_cache import PoolCache
from lpwatch.cache.position_cache import PositionCache
from lpwatch.cache.token_cache import TokenCache
from lpwatch.monitoring.engine import MonitorEngine
from lpwatch.storage.db import init_models, make_engine, make_session_factory
from lpwatch.storage.store import RecordStore
from lpwatch.tests.fakes import FakeChainReader, FakeClock, RecordingSink

# Automatically load .env from project root
load_dotenv(dotenv_path=pathlib.Path(__file__).parent.parent.parent / ".env")


@pytest_asyncio.fixture
async def store(tmp_path):
    """Fresh SQLite file per test; NullPool keeps connections off the previous loop."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'lpwatch.db'}")
    await init_models(engine)
    yield RecordStore(make_session_factory(engine))
    await engine.dispose()


@pytest.fixture
def reader():
    return FakeChainReader()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tokens(store, reader):
    return TokenCache(store, reader)


@pytest_asyncio.fixture
async def pools(store, reader, tokens):
    cache = PoolCache(store, reader, tokens)
    yield cache
    await cache.stop_all()


@pytest.fixture
def positions(store, reader, pools, clock):
    return PositionCache(store, reader, pools, reward_ttl=60, clock=clock)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest_asyncio.fixture
async def monitor(pools, positions, store, sink):
    engine = MonitorEngine(pools, positions, store, sink, timezone="UTC")
    yield engine
    await engine.shutdown()


@pytest.fixture
def notices(monitor):
    """Queue receiving everything the monitor publishes."""
    queue = asyncio.Queue()
    monitor.notices.subscribe(queue.put_nowait)
    return queue
