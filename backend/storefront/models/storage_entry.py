from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from storefront.db import Base


class StorageEntry(Base):
    __tablename__ = "storage_entries"
    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=0)
    writer = Column(String(64), nullable=True)  # context id of the last writer
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
