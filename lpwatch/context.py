from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from lpwatch.cache.pool_cache import PoolCache
from lpwatch.cache.position_cache import PositionCache
from lpwatch.cache.token_cache import TokenCache
from lpwatch.chain.client import get_web3_client
from lpwatch.chain.reader import ChainReader
from lpwatch.config import settings
from lpwatch.monitoring.engine import MonitorEngine
from lpwatch.notify.sink import LogSink, TelegramSink
from lpwatch.storage.db import init_models, make_engine, make_session_factory
from lpwatch.storage.store import RecordStore


@dataclass
class AppContext:
    """Everything a command needs, wired once per process."""
    db_engine: AsyncEngine
    store: RecordStore
    reader: ChainReader
    tokens: TokenCache
    pools: PoolCache
    positions: PositionCache
    sink: object
    monitor: MonitorEngine

    async def close(self) -> None:
        await self.monitor.shutdown()
        close_sink = getattr(self.sink, "close", None)
        if close_sink is not None:
            await close_sink()
        await self.db_engine.dispose()


async def build_context(
    rpc_url: str = settings.RPC_URL,
    database_url: str = settings.DATABASE_URL,
    sink: Optional[object] = None,
) -> AppContext:
    db_engine = make_engine(database_url)
    await init_models(db_engine)
    store = RecordStore(make_session_factory(db_engine))

    w3 = await get_web3_client(rpc_url)
    reader = ChainReader(
        w3,
        settings.CHAIN_ID,
        position_manager=settings.POSITION_MANAGER_ADDRESS,
        factory=settings.FACTORY_ADDRESS,
        staker=settings.STAKER_ADDRESS,
    )
    tokens = TokenCache(store, reader)
    pools = PoolCache(store, reader, tokens)
    positions = PositionCache(store, reader, pools)

    if sink is None:
        sink = TelegramSink(settings.TELEGRAM_BOT_TOKEN) if settings.TELEGRAM_BOT_TOKEN else LogSink()
    monitor = MonitorEngine(pools, positions, store, sink, timezone=settings.TIMEZONE)

    return AppContext(db_engine, store, reader, tokens, pools, positions, sink, monitor)
