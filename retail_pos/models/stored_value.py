"""Stored value model - one row per persisted state key."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from retail_pos.database import Base


class StoredValue(Base):
    """Key-value row holding the JSON text of one state slice."""

    __tablename__ = 'stored_value'

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<StoredValue(key='{self.key}', size={len(self.value or '')})>"
