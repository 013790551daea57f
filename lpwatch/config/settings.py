import os
import pathlib

from dotenv import load_dotenv

from lpwatch.config.contracts import get_contract_address

load_dotenv(dotenv_path=pathlib.Path(__file__).parent.parent.parent / ".env")

ALCHEMY_HOSTS = {
    "mainnet": "eth-mainnet.g.alchemy.com",
    "arbitrum": "arb-mainnet.g.alchemy.com",
    "base": "base-mainnet.g.alchemy.com",
    "polygon": "polygon-mainnet.g.alchemy.com",
}

CHAIN_IDS = {
    "mainnet": 1,
    "arbitrum": 42161,
    "base": 8453,
    "polygon": 137,
}

PLATFORM = os.getenv("PLATFORM", "pancakeswap")
NETWORK = os.getenv("NETWORK", "arbitrum")
CHAIN_ID = int(os.getenv("CHAIN_ID", CHAIN_IDS.get(NETWORK, 42161)))

RPC_URL = os.getenv("RPC_URL") or (
    f"https://{ALCHEMY_HOSTS.get(NETWORK, ALCHEMY_HOSTS['mainnet'])}/v2/{os.getenv('ALCHEMY_API_KEY')}"
)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///lpwatch.db")

POSITION_MANAGER_ADDRESS = os.getenv(
    "POSITION_MANAGER_ADDRESS",
    get_contract_address(PLATFORM, NETWORK, "nonfungiblePositionManager"),
)
FACTORY_ADDRESS = os.getenv(
    "FACTORY_ADDRESS",
    get_contract_address(PLATFORM, NETWORK, "v3Factory"),
)
STAKER_ADDRESS = os.getenv(
    "STAKER_ADDRESS",
    get_contract_address(PLATFORM, NETWORK, "masterChefV3", default=""),
) or None

TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "")
TIMEZONE = os.getenv("TIMEZONE", "UTC")

LOG_POLL_INTERVAL = float(os.getenv("LOG_POLL_INTERVAL", "2"))   # seconds between eth_getLogs polls
LOG_BLOCKS_PER_CALL = int(os.getenv("LOG_BLOCKS_PER_CALL", "2000"))

REWARD_TTL_SECONDS = float(os.getenv("REWARD_TTL_SECONDS", "60"))
REWARD_TOKEN_DECIMALS = int(os.getenv("REWARD_TOKEN_DECIMALS", "18"))
REWARD_TOKEN_SYMBOL = os.getenv("REWARD_TOKEN_SYMBOL", "CAKE")
