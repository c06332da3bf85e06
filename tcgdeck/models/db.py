"""
SQLAlchemy ORM models for persistent storage.

The application persists opaque string blobs under (namespace, key), the
same contract as a browser key-value store. Each user is one namespace.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class KeyValueEntryDB(Base):
    """A single stored value."""

    __tablename__ = "key_value_entries"
    __table_args__ = (UniqueConstraint("namespace", "key", name="uq_namespace_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    namespace: Mapped[str] = mapped_column(String(255), index=True)
    key: Mapped[str] = mapped_column(String(255))
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<KeyValueEntryDB(namespace={self.namespace}, key={self.key})>"
