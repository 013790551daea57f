from sqlalchemy import Column, DateTime, Index, Integer, String

from lpwatch.storage.base import Base, utcnow


class TokenRecord(Base):
    __tablename__ = "tokens"

    id         = Column(String(80),  primary_key=True)         # chainId:address
    chain_id   = Column(Integer,     nullable=False)
    address    = Column(String(42),  nullable=False)           # lower-case
    symbol     = Column(String(64),  nullable=False)
    name       = Column(String(128), nullable=False)
    decimals   = Column(Integer,     nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_tokens_chain", "chain_id"),
    )

    def __repr__(self) -> str:
        return f"<Token {self.id} {self.symbol}>"
