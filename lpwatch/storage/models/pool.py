from sqlalchemy import Column, DateTime, Index, Integer, String, UniqueConstraint

from lpwatch.storage.base import Base, utcnow


class PoolRecord(Base):
    __tablename__ = "pools"

    id             = Column(String(80), primary_key=True)      # chainId:poolAddress
    chain_id       = Column(Integer,    nullable=False)
    address        = Column(String(42), nullable=False)
    token0_id      = Column(String(80), nullable=False)        # TokenRecord.id, resolved by the cache
    token1_id      = Column(String(80), nullable=False)
    fee            = Column(Integer,    nullable=False)        # hundredths of a bip
    tick_spacing   = Column(Integer,    nullable=False)
    # uint160 / uint128 overflow every portable integer column, keep them as text
    sqrt_price_x96 = Column(String(80), nullable=False, default="0")
    tick           = Column(Integer,    nullable=False, default=0)
    liquidity      = Column(String(80), nullable=False, default="0")
    last_price     = Column(String(80), nullable=True)
    created_at     = Column(DateTime(timezone=True), default=utcnow)
    updated_at     = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("chain_id", "token0_id", "token1_id", "fee", name="uq_pools_chain_pair_fee"),
        Index("ix_pools_token0", "token0_id"),
        Index("ix_pools_token1", "token1_id"),
    )

    def __repr__(self) -> str:
        return f"<Pool {self.id} fee={self.fee}>"
