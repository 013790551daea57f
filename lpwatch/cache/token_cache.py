import logging
from dataclasses import dataclass
from decimal import Context, Decimal
from typing import Optional

from lpwatch.cache.base import LazyCache
from lpwatch.cache.keys import TokenKey
from lpwatch.errors import EntityNotFoundUpstream
from lpwatch.storage.models.token import TokenRecord

log = logging.getLogger(__name__)

_WIDE = Context(prec=100)


@dataclass(eq=False)
class Token:
    key: TokenKey
    symbol: str
    name: str
    decimals: int

    @property
    def address(self) -> str:
        return self.key.address

    @property
    def chain_id(self) -> int:
        return self.key.chain_id

    def format(self, raw: int) -> Decimal:
        """Raw integer amount in display units."""
        return Decimal(int(raw)).scaleb(-self.decimals, context=_WIDE)

    def __repr__(self) -> str:
        return f"<Token {self.symbol} {self.key}>"


class TokenCache(LazyCache[Token]):
    kind = "token"
    model = TokenRecord

    def key_for(self, address: str) -> TokenKey:
        return TokenKey(self.chain_id, address)

    async def resolve(self, record: TokenRecord) -> Token:
        return Token(
            key=TokenKey.parse(record.id),
            symbol=record.symbol,
            name=record.name,
            decimals=record.decimals,
        )

    async def clear(self, key: Optional[TokenKey] = None) -> int:
        """Delete one stored token, or all of this chain's tokens."""
        if key is not None:
            self._identity.pop(str(key), None)
            return int(await self.store.delete(TokenRecord, str(key)))
        self._identity.clear()
        removed = await self.store.delete_all(TokenRecord, chain_id=self.chain_id)
        log.info("[token-cache] cleared %d token(s) on chain %s", removed, self.chain_id)
        return removed

    async def _hydrate(self, key: TokenKey) -> Token:
        meta = await self.reader.token_meta(key.address)
        if not 0 <= meta.decimals <= 255:
            raise EntityNotFoundUpstream(self.kind, key, f"bad decimals {meta.decimals}")
        return Token(key=key, symbol=meta.symbol, name=meta.name, decimals=meta.decimals)

    def _to_record(self, token: Token) -> TokenRecord:
        return TokenRecord(
            id=str(token.key),
            chain_id=token.chain_id,
            address=token.address,
            symbol=token.symbol,
            name=token.name,
            decimals=token.decimals,
        )
