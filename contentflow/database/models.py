"""
SQLAlchemy Models for the Content Flow state store

One generic table holds every workflow collection. Each row is a
(collection, key) pair with a JSON document as its value, so workflow
stages can read and overwrite whole records without schema changes.
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, DateTime, JSON,
    Index, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class StateEntry(Base):
    """A single key-value record inside a named collection."""
    __tablename__ = "state_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(255), nullable=False)
    key = Column(String(255), nullable=False)

    # Whole record, overwritten on every set()
    value = Column(JSON, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("collection", "key", name="uq_state_collection_key"),
        Index("idx_state_collection", "collection"),
    )

    def __repr__(self) -> str:
        return f"<StateEntry {self.collection}/{self.key}>"
