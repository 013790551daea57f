from dataclasses import dataclass


def _normalize(address: str) -> str:
    address = address.strip().lower()
    if not address.startswith("0x") or len(address) != 42:
        raise ValueError(f"not an address: {address!r}")
    return address


@dataclass(frozen=True)
class TokenKey:
    chain_id: int
    address: str

    def __post_init__(self):
        object.__setattr__(self, "chain_id", int(self.chain_id))
        object.__setattr__(self, "address", _normalize(self.address))

    def __str__(self) -> str:
        return f"{self.chain_id}:{self.address}"

    @classmethod
    def parse(cls, text: str) -> "TokenKey":
        chain_id, address = text.split(":")
        return cls(int(chain_id), address)


@dataclass(frozen=True)
class PoolKey:
    chain_id: int
    address: str

    def __post_init__(self):
        object.__setattr__(self, "chain_id", int(self.chain_id))
        object.__setattr__(self, "address", _normalize(self.address))

    def __str__(self) -> str:
        return f"{self.chain_id}:{self.address}"

    @classmethod
    def parse(cls, text: str) -> "PoolKey":
        chain_id, address = text.split(":")
        return cls(int(chain_id), address)


@dataclass(frozen=True)
class PositionKey:
    chain_id: int
    manager: str
    token_id: int

    def __post_init__(self):
        object.__setattr__(self, "chain_id", int(self.chain_id))
        object.__setattr__(self, "manager", _normalize(self.manager))
        object.__setattr__(self, "token_id", int(self.token_id))

    def __str__(self) -> str:
        return f"{self.chain_id}:{self.manager}:{self.token_id}"

    @classmethod
    def parse(cls, text: str) -> "PositionKey":
        chain_id, manager, token_id = text.split(":")
        return cls(int(chain_id), manager, int(token_id))
