import asyncio
import logging

from lpwatch.context import AppContext, build_context
from lpwatch.utils.shortname import ShortNameFilter

log = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s] %(shortname)s: %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # handler-level so records propagated from child loggers get the field too
    for handler in logging.getLogger().handlers:
        handler.addFilter(ShortNameFilter())
    # per-request chatter from the HTTP stack
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)


async def monitor_forever(ctx: AppContext) -> None:
    """Restore stored watches and keep following their pools until cancelled."""
    restored = await ctx.monitor.restore()
    if not restored:
        log.warning("[main] nothing to monitor yet; add a watch with `lpwatch watch`")
    await asyncio.Event().wait()


async def run() -> None:
    ctx = await build_context()
    try:
        await monitor_forever(ctx)
    finally:
        await ctx.close()
        log.info("[main] shut down")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(run())
