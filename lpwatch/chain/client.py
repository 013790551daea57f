import logging
from typing import Dict

import backoff
from web3 import AsyncWeb3

log = logging.getLogger(__name__)

# One AsyncWeb3 per RPC URL
_web3_clients: Dict[str, AsyncWeb3] = {}


@backoff.on_exception(backoff.expo, Exception, max_tries=5, jitter=None)
async def _create_web3_client(rpc_url: str) -> AsyncWeb3:
    log.info("[chain] connecting to RPC %s", _redact(rpc_url))
    w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": 10}))

    if not await w3.is_connected():
        raise ConnectionError(f"Failed to connect to RPC: {_redact(rpc_url)}")

    log.info("[chain] connected to %s", _redact(rpc_url))
    return w3


async def get_web3_client(rpc_url: str) -> AsyncWeb3:
    """Returns a cached or newly created AsyncWeb3 client for a given RPC URL."""
    if rpc_url not in _web3_clients:
        _web3_clients[rpc_url] = await _create_web3_client(rpc_url)
    return _web3_clients[rpc_url]


def _redact(rpc_url: str) -> str:
    # Alchemy style URLs carry the API key as the last path segment
    head, _, tail = rpc_url.rpartition("/")
    return f"{head}/***" if head.count("/") > 2 and len(tail) > 16 else rpc_url
