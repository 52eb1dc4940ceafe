"""SQLAlchemy ORM models for durable engine state"""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class KeyValueEntry(Base):
    """String value stored under a string key (cooldown timestamps)"""

    __tablename__ = "kv_entry"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
