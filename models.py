"""
Local store models for DoseKeeper
"""

from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime

from database import Base
from config import TableNames


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocalStoreEntry(Base):
    """App-private key/value entry. Values are JSON documents."""
    __tablename__ = TableNames.LOCAL_STORE

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<LocalStoreEntry(key={self.key!r})>"
