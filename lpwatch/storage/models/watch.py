from sqlalchemy import Column, DateTime, Index, String

from lpwatch.storage.base import Base, utcnow


class WatchRecord(Base):
    """A chat message kept up to date by the monitor; survives restarts."""
    __tablename__ = "watches"

    id          = Column(String(240), primary_key=True)        # kind_refKey_destination
    kind        = Column(String(16),  nullable=False)          # pool / position
    ref_key     = Column(String(140), nullable=False)
    destination = Column(String(64),  nullable=False)
    message_id  = Column(String(64),  nullable=True)
    created_at  = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("ix_watches_kind", "kind"),
    )

    @staticmethod
    def make_id(kind: str, ref_key: str, destination: str) -> str:
        return f"{kind}_{ref_key}_{destination}"
