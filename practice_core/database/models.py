"""
Storage Table Models

Tables backing the SQL key-value storage adapter.
"""

import datetime

from sqlalchemy import Column, DateTime, String, Text

from practice_core.database.base import Base


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class KeyValueEntry(Base):
    """One stored value; the row is replaced wholesale on every write."""

    __tablename__ = "key_value_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<KeyValueEntry key={self.key!r}>"
