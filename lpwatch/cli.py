import asyncio
import logging
from typing import List, Optional

import typer

from lpwatch.config.settings import TIMEZONE
from lpwatch.context import build_context
from lpwatch.errors import EntityNotFoundUpstream
from lpwatch.main import configure_logging, monitor_forever
from lpwatch.notify import formatters

log = logging.getLogger(__name__)

app = typer.Typer(help="Watch DEX liquidity pools and positions")


def _run(command):
    """Build the app context, run `command(ctx)` and always release it."""
    async def runner():
        ctx = await build_context()
        try:
            return await command(ctx)
        finally:
            await ctx.close()

    try:
        return asyncio.run(runner())
    except EntityNotFoundUpstream as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        log.info("[cli] interrupted")


async def _position_card(ctx, position, with_fees: bool = False) -> str:
    await ctx.pools.refresh(position.pool)
    prices = ctx.pools.prices(position.pool, position)
    amounts = ctx.positions.token_amounts(position)
    value = ctx.positions.combined_value(position)
    fees = await ctx.positions.unclaimed_fees(position) if with_fees else None
    return formatters.position_summary(position, prices, amounts, value, fees)


@app.callback()
def setup(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    configure_logging(logging.DEBUG if verbose else logging.INFO)


@app.command("pool")
def pool_cmd(address: str = typer.Argument(..., help="Pool address 0x...")):
    """Current price, tick and TVL of a pool."""
    async def show(ctx):
        pool = await ctx.pools.fetch_or_create(ctx.pools.key_for(address))
        await ctx.pools.refresh(pool)
        tvl = await ctx.pools.tvl(pool)
        typer.echo(formatters.pool_status(pool, TIMEZONE))
        typer.echo(f"Fee: {pool.fee / 10000:.2f}% | TVL: {formatters.money(tvl)} {pool.token1.symbol}")

    _run(show)


@app.command("position")
def position_cmd(token_id: int = typer.Argument(..., help="Position NFT id")):
    """Range, amounts and value of one position."""
    async def show(ctx):
        position = await ctx.positions.fetch(token_id)
        await ctx.positions.refresh(position)
        typer.echo(await _position_card(ctx, position))

    _run(show)


@app.command("fees")
def fees_cmd(token_id: int = typer.Argument(..., help="Position NFT id")):
    """Unclaimed fees and pending farm reward of a position."""
    async def show(ctx):
        position = await ctx.positions.fetch(token_id)
        await ctx.positions.refresh(position)
        await ctx.pools.refresh(position.pool)
        fees = await ctx.positions.unclaimed_fees(position)
        pool = position.pool
        typer.echo(
            f"#{position.token_id} {pool.pair}\n"
            f"{formatters.format_amount(fees.token0_fees)} {pool.token0.symbol}"
            f" + {formatters.format_amount(fees.token1_fees)} {pool.token1.symbol}"
            f" ≈ {formatters.money(fees.total_value)} {pool.token1.symbol}\n"
            f"Reward: {formatters.format_amount(fees.reward.amount)} {fees.reward.symbol}"
        )

    _run(show)


@app.command("wallet")
def wallet_cmd(
    owner: str = typer.Argument(..., help="Wallet address 0x..."),
    include_empty: bool = typer.Option(False, "--all", help="Also list closed and dust positions"),
):
    """Every position held or staked by a wallet."""
    async def show(ctx):
        positions = await ctx.positions.scan_wallet(owner, include_empty=include_empty)
        if not positions:
            typer.echo("No positions.")
        for position in positions:
            typer.echo(await _position_card(ctx, position, with_fees=not position.is_closed))
            typer.echo("")

    _run(show)


@app.command("watch")
def watch_cmd(
    pool_address: str = typer.Argument(..., help="Pool address 0x..."),
    chat: str = typer.Option(..., "--chat", help="Chat id to keep updated"),
    alert: Optional[List[float]] = typer.Option(None, "--alert", help="Price alert, repeatable"),
    position: Optional[List[int]] = typer.Option(None, "--position", help="Position NFT id to follow, repeatable"),
):
    """Keep a chat message updated with a pool's swaps until interrupted."""
    async def watch(ctx):
        pool = await ctx.pools.fetch_or_create(ctx.pools.key_for(pool_address))
        await ctx.pools.refresh(pool)
        await ctx.monitor.watch_pool(pool, chat)
        for target in alert or []:
            await ctx.monitor.add_alert(pool, str(target), chat)
        for token_id in position or []:
            await ctx.monitor.watch_position(await ctx.positions.fetch(token_id), chat)
        await monitor_forever(ctx)

    _run(watch)


@app.command("run")
def run_cmd():
    """Restore stored watches and monitor until interrupted."""
    _run(monitor_forever)


def main():
    app()


if __name__ == "__main__":
    main()
