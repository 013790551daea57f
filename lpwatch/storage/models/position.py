from sqlalchemy import BigInteger, Boolean, Column, DateTime, Index, Integer, String, UniqueConstraint

from lpwatch.storage.base import Base, utcnow


class PositionRecord(Base):
    __tablename__ = "positions"

    id               = Column(String(140), primary_key=True)   # chainId:positionManager:tokenId
    chain_id         = Column(Integer,     nullable=False)
    position_manager = Column(String(42),  nullable=False)
    token_id         = Column(BigInteger,  nullable=False)
    owner            = Column(String(42),  nullable=False)
    pool_id          = Column(String(80),  nullable=False)     # PoolRecord.id, resolved by the cache
    tick_lower       = Column(Integer,     nullable=False)
    tick_upper       = Column(Integer,     nullable=False)
    liquidity        = Column(String(80),  nullable=False)     # 0 == closed, kept for history
    is_staked        = Column(Boolean,     nullable=False, default=False)
    created_at       = Column(DateTime(timezone=True), default=utcnow)
    updated_at       = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("chain_id", "position_manager", "token_id", name="uq_positions_chain_manager_token"),
        Index("ix_positions_owner", "owner"),
        Index("ix_positions_pool", "pool_id"),
    )

    def __repr__(self) -> str:
        return f"<Position {self.id} liquidity={self.liquidity}>"
