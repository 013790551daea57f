from decimal import Decimal

Q96 = 1 << 96
Q192 = 1 << 192

MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

MAX_UINT128 = 2**128 - 1
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DISPLAY_DECIMALS = 8
INFINITE_PRICE = Decimal("Infinity")

# positions worth less than this (token1 units) are treated as empty dust
DUST_THRESHOLD = Decimal("0.01")

STABLECOINS = {"usdc", "usdc.e", "usdt", "usdt0", "dai", "busd", "usdp", "tusd", "fdusd"}
