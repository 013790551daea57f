from web3 import Web3

ERC20_ABI = [
    { "name": "name", "outputs": [ { "type": "string" } ],
      "inputs": [], "stateMutability": "view", "type": "function"},
    { "name": "symbol", "outputs": [ { "type": "string" } ],
      "inputs": [], "stateMutability": "view", "type": "function"},
    { "name": "decimals", "outputs": [ { "type": "uint8" } ],
      "inputs": [], "stateMutability": "view", "type": "function"},
    { "name": "balanceOf", "outputs": [ { "type": "uint256" } ],
      "inputs": [ { "name": "account", "type": "address" } ],
      "stateMutability": "view", "type": "function"},
]

_SWAP_INPUTS = [
    {"indexed": True, "name": "sender", "type": "address"},
    {"indexed": True, "name": "recipient", "type": "address"},
    {"indexed": False, "name": "amount0", "type": "int256"},
    {"indexed": False, "name": "amount1", "type": "int256"},
    {"indexed": False, "name": "sqrtPriceX96", "type": "uint160"},
    {"indexed": False, "name": "liquidity", "type": "uint128"},
    {"indexed": False, "name": "tick", "type": "int24"},
]

SWAP_EVENT_ABI = {"anonymous": False, "name": "Swap", "type": "event", "inputs": _SWAP_INPUTS}

# PancakeSwap V3 appends the protocol fee taken by the swap
PANCAKE_SWAP_EVENT_ABI = {
    "anonymous": False,
    "name": "Swap",
    "type": "event",
    "inputs": _SWAP_INPUTS + [
        {"indexed": False, "name": "protocolFeesToken0", "type": "uint128"},
        {"indexed": False, "name": "protocolFeesToken1", "type": "uint128"},
    ],
}

SWAP_SIGNATURE = "Swap(address,address,int256,int256,uint160,uint128,int24)"
PANCAKE_SWAP_SIGNATURE = "Swap(address,address,int256,int256,uint160,uint128,int24,uint128,uint128)"
SWAP_TOPIC = Web3.to_hex(Web3.keccak(text=SWAP_SIGNATURE))
PANCAKE_SWAP_TOPIC = Web3.to_hex(Web3.keccak(text=PANCAKE_SWAP_SIGNATURE))

SWAP_EVENTS = {
    SWAP_TOPIC: SWAP_EVENT_ABI,
    PANCAKE_SWAP_TOPIC: PANCAKE_SWAP_EVENT_ABI,
}

POOL_ABI = [
    { "name": "token0", "outputs": [ { "type": "address" } ],
      "inputs": [], "stateMutability": "view", "type": "function"},
    { "name": "token1", "outputs": [ { "type": "address" } ],
      "inputs": [], "stateMutability": "view", "type": "function"},
    { "name": "fee", "outputs": [ { "type": "uint24" } ],
      "inputs": [], "stateMutability": "view", "type": "function"},
    { "name": "tickSpacing", "outputs": [ { "type": "int24" } ],
      "inputs": [], "stateMutability": "view", "type": "function"},
    { "name": "liquidity", "outputs": [ { "type": "uint128" } ],
      "inputs": [], "stateMutability": "view", "type": "function"},
    # slot0 is read positionally; pancake adds wider feeProtocol, both start with price/tick
    { "name": "slot0",
      "outputs": [
          { "name": "sqrtPriceX96", "type": "uint160" },
          { "name": "tick", "type": "int24" },
          { "name": "observationIndex", "type": "uint16" },
          { "name": "observationCardinality", "type": "uint16" },
          { "name": "observationCardinalityNext", "type": "uint16" },
          { "name": "feeProtocol", "type": "uint32" },
          { "name": "unlocked", "type": "bool" },
      ],
      "inputs": [], "stateMutability": "view", "type": "function"},
]

FACTORY_ABI = [
    { "name": "getPool", "outputs": [ { "type": "address" } ],
      "inputs": [
          { "name": "tokenA", "type": "address" },
          { "name": "tokenB", "type": "address" },
          { "name": "fee", "type": "uint24" },
      ],
      "stateMutability": "view", "type": "function"},
]

POSITION_MANAGER_ABI = [
    { "name": "positions",
      "outputs": [
          { "name": "nonce", "type": "uint96" },
          { "name": "operator", "type": "address" },
          { "name": "token0", "type": "address" },
          { "name": "token1", "type": "address" },
          { "name": "fee", "type": "uint24" },
          { "name": "tickLower", "type": "int24" },
          { "name": "tickUpper", "type": "int24" },
          { "name": "liquidity", "type": "uint128" },
          { "name": "feeGrowthInside0LastX128", "type": "uint256" },
          { "name": "feeGrowthInside1LastX128", "type": "uint256" },
          { "name": "tokensOwed0", "type": "uint128" },
          { "name": "tokensOwed1", "type": "uint128" },
      ],
      "inputs": [ { "name": "tokenId", "type": "uint256" } ],
      "stateMutability": "view", "type": "function"},
    { "name": "ownerOf", "outputs": [ { "type": "address" } ],
      "inputs": [ { "name": "tokenId", "type": "uint256" } ],
      "stateMutability": "view", "type": "function"},
    { "name": "balanceOf", "outputs": [ { "type": "uint256" } ],
      "inputs": [ { "name": "owner", "type": "address" } ],
      "stateMutability": "view", "type": "function"},
    { "name": "tokenOfOwnerByIndex", "outputs": [ { "type": "uint256" } ],
      "inputs": [
          { "name": "owner", "type": "address" },
          { "name": "index", "type": "uint256" },
      ],
      "stateMutability": "view", "type": "function"},
    { "name": "collect",
      "outputs": [
          { "name": "amount0", "type": "uint256" },
          { "name": "amount1", "type": "uint256" },
      ],
      "inputs": [
          { "name": "params", "type": "tuple",
            "components": [
                { "name": "tokenId", "type": "uint256" },
                { "name": "recipient", "type": "address" },
                { "name": "amount0Max", "type": "uint128" },
                { "name": "amount1Max", "type": "uint128" },
            ]},
      ],
      "stateMutability": "payable", "type": "function"},
]

STAKER_ABI = [
    { "name": "userPositionInfos",
      "outputs": [
          { "name": "liquidity", "type": "uint128" },
          { "name": "boostLiquidity", "type": "uint128" },
          { "name": "tickLower", "type": "int24" },
          { "name": "tickUpper", "type": "int24" },
          { "name": "rewardGrowthInside", "type": "uint256" },
          { "name": "reward", "type": "uint256" },
          { "name": "user", "type": "address" },
          { "name": "pid", "type": "uint256" },
          { "name": "boostMultiplier", "type": "uint256" },
      ],
      "inputs": [ { "name": "tokenId", "type": "uint256" } ],
      "stateMutability": "view", "type": "function"},
    { "name": "pendingCake", "outputs": [ { "name": "reward", "type": "uint256" } ],
      "inputs": [ { "name": "_tokenId", "type": "uint256" } ],
      "stateMutability": "view", "type": "function"},
    # staked NFTs are enumerable per user on the staker itself
    { "name": "balanceOf", "outputs": [ { "type": "uint256" } ],
      "inputs": [ { "name": "owner", "type": "address" } ],
      "stateMutability": "view", "type": "function"},
    { "name": "tokenOfOwnerByIndex", "outputs": [ { "type": "uint256" } ],
      "inputs": [
          { "name": "owner", "type": "address" },
          { "name": "index", "type": "uint256" },
      ],
      "stateMutability": "view", "type": "function"},
]
