"""Known periphery contracts, keyed platform -> network -> contract name."""

CONTRACTS = {
    "pancakeswap": {
        "arbitrum": {
            "nonfungiblePositionManager": "0x46A15B0b27311cedF172AB29E4f4766fbE7F4364",
            "masterChefV3": "0x5e09ACf80C0296740eC5d6F643005a4ef8DaA694",
            "v3Factory": "0x0BFbCF9fa4f9C56B0F40a671Ad40E0805A091865",
        },
    },
    "uniswap_v3": {
        "arbitrum": {
            "nonfungiblePositionManager": "0xC36442b4a4522E871399CD717aBDD847Ab11FE88",
            "v3Factory": "0x1F98431c8aD98523631AE4a59f267346ea31F984",
        },
        "base": {
            "nonfungiblePositionManager": "0x03a520b32C04BF3bEEf7BEb72E919cf822Ed34f1",
            "v3Factory": "0x33128a8fC17869897dcE68Ed026d694621f6FDfD",
        },
    },
}

_MISSING = object()


def get_contract_address(platform: str, network: str, contract: str, default=_MISSING) -> str:
    """Look up a contract address.

    Raises ValueError for an unknown platform, network or contract unless a
    default is given.
    """
    try:
        networks = CONTRACTS[platform]
    except KeyError:
        if default is not _MISSING:
            return default
        raise ValueError(f"Unsupported platform: {platform}")

    try:
        contracts = networks[network]
    except KeyError:
        if default is not _MISSING:
            return default
        raise ValueError(f"Unsupported network: {network} for platform: {platform}")

    address = contracts.get(contract)
    if address is None:
        if default is not _MISSING:
            return default
        raise ValueError(f"Contract {contract} not found for {platform} on {network}")
    return address
