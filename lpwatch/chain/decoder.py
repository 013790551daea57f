from hexbytes import HexBytes
from web3 import Web3
from web3._utils.events import get_event_data

from lpwatch.config.abis import SWAP_EVENTS
from lpwatch.utils.types import SwapLog

_CODEC = Web3().codec
_SWAP_EVENTS = {HexBytes(topic): abi for topic, abi in SWAP_EVENTS.items()}


def decode_swap(log) -> SwapLog:
    """Decode a raw Swap log (Uniswap or PancakeSwap layout) into a SwapLog.

    Raises ValueError for logs that are not a known Swap event; decoding errors
    from malformed data propagate as raised by the codec.
    """
    topics = log.get("topics") or []
    if not topics:
        raise ValueError("log has no topics")

    abi = _SWAP_EVENTS.get(HexBytes(topics[0]))
    if abi is None:
        raise ValueError(f"not a Swap log: topic0={HexBytes(topics[0]).hex()}")

    evt = get_event_data(_CODEC, abi, log)
    args = evt["args"]

    tx_hash = log.get("transactionHash")
    return SwapLog(
        sender=args["sender"].lower(),
        recipient=args["recipient"].lower(),
        amount0=int(args["amount0"]),
        amount1=int(args["amount1"]),
        sqrt_price_x96=int(args["sqrtPriceX96"]),
        liquidity=int(args["liquidity"]),
        tick=int(args["tick"]),
        block_number=log.get("blockNumber"),
        tx_hash=Web3.to_hex(tx_hash) if tx_hash is not None else None,
        log_index=log.get("logIndex"),
        protocol_fees0=args.get("protocolFeesToken0"),
        protocol_fees1=args.get("protocolFeesToken1"),
    )
