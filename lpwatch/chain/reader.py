"""Every on-chain read the caches and the monitor need, behind one object.

Calls retry with exponential backoff on transport trouble and give up at once
on a contract revert; the last error propagates to the caller.
"""
import asyncio
import logging
from typing import AsyncIterator, List, Optional, Sequence, Tuple

import backoff
from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError

from lpwatch.config.abis import ERC20_ABI, FACTORY_ABI, POOL_ABI, POSITION_MANAGER_ABI, STAKER_ABI
from lpwatch.config.settings import LOG_BLOCKS_PER_CALL, LOG_POLL_INTERVAL
from lpwatch.utils.constants import MAX_UINT128, ZERO_ADDRESS
from lpwatch.utils.types import PoolMeta, PoolState, PositionData, TokenMeta

log = logging.getLogger(__name__)


def _is_revert(exc: Exception) -> bool:
    return isinstance(exc, ContractLogicError)


def _checksum(address: str) -> str:
    return Web3.to_checksum_address(address.lower())


def _retry(max_tries: int = 4):
    return backoff.on_exception(
        backoff.expo,
        Exception,
        max_tries=max_tries,
        giveup=_is_revert,
        jitter=None,
    )


class ChainReader:
    def __init__(
        self,
        w3: AsyncWeb3,
        chain_id: int,
        position_manager: str,
        factory: str,
        staker: Optional[str] = None,
        poll_interval: float = LOG_POLL_INTERVAL,
        blocks_per_call: int = LOG_BLOCKS_PER_CALL,
    ):
        self.w3 = w3
        self.chain_id = chain_id
        self.position_manager = position_manager.lower()
        self.factory = factory.lower()
        self.staker = staker.lower() if staker else None
        self.poll_interval = poll_interval
        self.blocks_per_call = blocks_per_call

        self._npm = w3.eth.contract(address=_checksum(position_manager), abi=POSITION_MANAGER_ABI)
        self._factory = w3.eth.contract(address=_checksum(factory), abi=FACTORY_ABI)
        self._staker = w3.eth.contract(address=_checksum(staker), abi=STAKER_ABI) if staker else None

    # ── tokens ────────────────────────────────────────────────────────────
    @_retry()
    async def token_meta(self, address: str) -> TokenMeta:
        token = self.w3.eth.contract(address=_checksum(address), abi=ERC20_ABI)
        symbol, name, decimals = await asyncio.gather(
            token.functions.symbol().call(),
            token.functions.name().call(),
            token.functions.decimals().call(),
        )
        return TokenMeta(symbol=symbol, name=name, decimals=int(decimals))

    @_retry()
    async def balance_of(self, token: str, owner: str) -> int:
        contract = self.w3.eth.contract(address=_checksum(token), abi=ERC20_ABI)
        return int(await contract.functions.balanceOf(_checksum(owner)).call())

    # ── pools ─────────────────────────────────────────────────────────────
    @_retry()
    async def get_pool_address(self, token0: str, token1: str, fee: int) -> str:
        """Factory lookup; the zero address means no such pool."""
        address = await self._factory.functions.getPool(_checksum(token0), _checksum(token1), int(fee)).call()
        return address.lower()

    @_retry()
    async def pool_meta(self, address: str) -> PoolMeta:
        pool = self.w3.eth.contract(address=_checksum(address), abi=POOL_ABI)
        token0, token1, fee, tick_spacing = await asyncio.gather(
            pool.functions.token0().call(),
            pool.functions.token1().call(),
            pool.functions.fee().call(),
            pool.functions.tickSpacing().call(),
        )
        return PoolMeta(token0.lower(), token1.lower(), int(fee), int(tick_spacing))

    @_retry()
    async def pool_state(self, address: str) -> PoolState:
        pool = self.w3.eth.contract(address=_checksum(address), abi=POOL_ABI)
        slot0, liquidity = await asyncio.gather(
            pool.functions.slot0().call(),
            pool.functions.liquidity().call(),
        )
        return PoolState(sqrt_price_x96=int(slot0[0]), tick=int(slot0[1]), liquidity=int(liquidity))

    # ── positions ─────────────────────────────────────────────────────────
    @_retry()
    async def position(self, token_id: int) -> PositionData:
        data = await self._npm.functions.positions(int(token_id)).call()
        return PositionData(
            token0=data[2].lower(),
            token1=data[3].lower(),
            fee=int(data[4]),
            tick_lower=int(data[5]),
            tick_upper=int(data[6]),
            liquidity=int(data[7]),
        )

    @_retry()
    async def owner_of(self, token_id: int) -> str:
        return (await self._npm.functions.ownerOf(int(token_id)).call()).lower()

    @_retry()
    async def staked_owner(self, token_id: int) -> Optional[str]:
        """Wallet that staked the NFT in the farm, None when it is not staked."""
        if self._staker is None:
            return None
        info = await self._staker.functions.userPositionInfos(int(token_id)).call()
        user = info[6].lower()
        return None if user == ZERO_ADDRESS else user

    @_retry()
    async def pending_reward(self, token_id: int) -> int:
        if self._staker is None:
            return 0
        return int(await self._staker.functions.pendingCake(int(token_id)).call())

    @_retry(max_tries=2)
    async def simulate_collect(self, token_id: int, sender: str) -> Tuple[int, int]:
        """Fees a `collect` would pay out right now, via eth_call; nothing is sent."""
        params = (int(token_id), ZERO_ADDRESS, MAX_UINT128, MAX_UINT128)
        amount0, amount1 = await self._npm.functions.collect(params).call({"from": _checksum(sender)})
        return int(amount0), int(amount1)

    async def wallet_token_ids(self, owner: str, staked: bool = False) -> List[int]:
        """NFT ids held by `owner` in the position manager, or staked by it in the farm."""
        contract = self._staker if staked else self._npm
        if contract is None:
            return []
        owner = _checksum(owner)
        count = await self._call(contract.functions.balanceOf(owner))
        token_ids = []
        # sequential on purpose: free-tier RPCs rate limit bursts
        for index in range(int(count)):
            token_ids.append(int(await self._call(contract.functions.tokenOfOwnerByIndex(owner, index))))
        return token_ids

    # ── blocks & logs ─────────────────────────────────────────────────────
    @_retry()
    async def block_number(self) -> int:
        return int(await self.w3.eth.block_number)

    @_retry(max_tries=3)
    async def get_logs(self, address: str, topics: Sequence, from_block: int, to_block: int) -> list:
        return await self.w3.eth.get_logs({
            "fromBlock": from_block,
            "toBlock": to_block,
            "address": _checksum(address),
            "topics": list(topics),
        })

    async def watch_logs(self, address: str, topics: Sequence, on_ready=None) -> AsyncIterator:
        """Yield logs of `address` matching `topics` from the current block onward.

        Polls eth_getLogs; a failed round is retried over the same block range.
        `on_ready()` is called once the starting block is known. Runs until the
        consuming task is cancelled.
        """
        next_block = await self.block_number()
        if on_ready is not None:
            on_ready()
        while True:
            try:
                head = await self.block_number()
                if head < next_block:
                    await asyncio.sleep(self.poll_interval)
                    continue
                to_block = min(head, next_block + self.blocks_per_call - 1)
                entries = await self.get_logs(address, topics, next_block, to_block)
            except Exception as e:
                log.warning("[chain] log poll for %s failed: %s", address, e)
                await asyncio.sleep(self.poll_interval)
                continue

            for entry in entries:
                yield entry
            next_block = to_block + 1
            if to_block == head:
                await asyncio.sleep(self.poll_interval)

    @_retry()
    async def _call(self, fn):
        return await fn.call()
